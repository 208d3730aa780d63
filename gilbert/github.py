"""Plugin source that downloads release assets from GitHub."""

from __future__ import annotations

import hashlib
import logging
import os
import platform
import posixpath
import sys
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import SplitResult, parse_qs, quote, urlsplit

import requests

from . import storage
from .fs import exists
from .pluginsupport import PLUGIN_PERMISSIONS, add_plugin_extension
from .web import progress_download_file

PROVIDER_NAME = "github"
"""Name of the GitHub plugin provider."""

DEFAULT_DOMAIN = "github.com"
LATEST_VERSION = "latest"
DEFAULT_PROTOCOL = "https"
DEFAULT_API_URL = "https://api.github.com/"

_PKG_PATH_SIZE = 2  # owner/repo
_PATH_DELIMITER = "/"
_PROTOCOL_PARAM = "protocol"
_VERSION_PARAM = "version"
_TOKEN_PARAM = "token"

_log = logging.getLogger("gilbert")


class GitHubError(Exception):
    """A plugin could not be located or fetched from GitHub."""


def _goos() -> str:
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "darwin":
        return "darwin"
    if sys.platform in ("win32", "cygwin"):
        return "windows"
    if sys.platform.startswith("freebsd"):
        return "freebsd"
    return sys.platform


def _goarch() -> str:
    machine = platform.machine().lower()
    if machine in ("x86_64", "amd64"):
        return "amd64"
    if machine in ("aarch64", "arm64"):
        return "arm64"
    if machine in ("i386", "i686", "x86"):
        return "386"
    if machine.startswith("arm"):
        return "arm"
    return machine


def _split(uri: str | SplitResult) -> SplitResult:
    return urlsplit(uri) if isinstance(uri, str) else uri


def _host(parts: SplitResult) -> str:
    return parts.netloc.rpartition("@")[2]


def _host_name(parts: SplitResult) -> str:
    host = _host(parts)
    if host.startswith("["):
        return host[1:].partition("]")[0]
    return host.partition(":")[0]


def _query(parts: SplitResult, name: str) -> str:
    values = parse_qs(parts.query, keep_blank_values=True).get(name)
    return values[0] if values else ""


@dataclass
class PackageQuery:
    """A plugin package hosted in a GitHub repository."""

    owner: str = ""
    repo: str = ""
    version: str = ""
    location: str = ""

    def file_name(self) -> str:
        """Return the release asset name for the current platform."""
        return add_plugin_extension(f"{self.repo}_{_goos()}-{_goarch()}")

    def directory(self) -> str:
        """Return the storage directory of the package, relative to the plugins store."""
        digest = hashlib.md5(self.location.encode()).hexdigest()
        return os.path.join(PROVIDER_NAME, digest)


class GitHubClient:
    """Minimal client of the GitHub releases API."""

    def __init__(self, session: requests.Session, base_url: str = DEFAULT_API_URL) -> None:
        self.session = session
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    @classmethod
    def enterprise(cls, session: requests.Session, base_url: str) -> GitHubClient:
        """Return a client of a GitHub Enterprise instance at *base_url*."""
        url = base_url if base_url.endswith("/") else base_url + "/"
        if not url.endswith("/api/v3/"):
            url += "api/v3/"
        return cls(session, url)

    def _get(self, path: str) -> dict[str, Any]:
        url = self.base_url + path
        try:
            response = self.session.get(
                url, headers={"Accept": "application/vnd.github.v3+json"}
            )
        except requests.RequestException as err:
            raise GitHubError(str(err)) from err
        if response.status_code != 200:
            raise GitHubError(f"GET {url}: {response.status_code} {response.reason}")
        try:
            return response.json()
        except ValueError as err:
            raise GitHubError(f"GET {url}: malformed response") from err

    def latest_release(self, owner: str, repo: str) -> dict[str, Any]:
        """Return the latest release of a repository."""
        return self._get(f"repos/{quote(owner, safe='')}/{quote(repo, safe='')}/releases/latest")

    def release_by_tag(self, owner: str, repo: str, tag: str) -> dict[str, Any]:
        """Return the release of a repository tagged *tag*."""
        return self._get(
            f"repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
            f"/releases/tags/{quote(tag, safe='')}"
        )


@dataclass
class DownloadContext:
    """Everything needed to fetch one plugin package."""

    gh_client: GitHubClient
    http_client: requests.Session
    pkg: PackageQuery = field(default_factory=PackageQuery)


def _http_client(parts: SplitResult) -> requests.Session:
    session = requests.Session()
    token = _query(parts, _TOKEN_PARAM)
    if token:
        session.headers["Authorization"] = f"Bearer {token}"
    return session


def parse_pkg_path(pkg_path: list[str]) -> PackageQuery:
    """Build a package query from ``[owner, repo, ...]``."""
    return PackageQuery(owner=pkg_path[0], repo=pkg_path[1])


def parse_enterprise_url(
    uri: str | SplitResult, url_path: list[str]
) -> tuple[str, PackageQuery]:
    """Return the GitHub Enterprise base URL and the package named by *uri*.

    Path segments before the last two belong to the base URL.
    """
    parts = _split(uri)
    out = (_query(parts, _PROTOCOL_PARAM) or DEFAULT_PROTOCOL) + "://" + _host(parts)
    if len(url_path) > _PKG_PATH_SIZE:
        out += _PATH_DELIMITER + _PATH_DELIMITER.join(url_path[:-_PKG_PATH_SIZE])
        owner, repo = url_path[-_PKG_PATH_SIZE:]
    else:
        owner, repo = url_path[0], url_path[1]
    return out, PackageQuery(owner=owner, repo=repo)


def read_url(uri: str | SplitResult) -> DownloadContext:
    """Parse a plugin URL into a download context."""
    parts = _split(uri)
    if not _host(parts):
        raise GitHubError("please specify github host (e.g github.com)")

    pkg_path = parts.path.strip(_PATH_DELIMITER).split(_PATH_DELIMITER)
    if len(pkg_path) < _PKG_PATH_SIZE:
        raise GitHubError(
            "bad GitHub repo path format (expected: 'github.com/owner/repo_name')"
        )

    session = _http_client(parts)
    if _host(parts) != DEFAULT_DOMAIN:
        gh_url, pkg = parse_enterprise_url(parts, pkg_path)
        client = GitHubClient.enterprise(session, gh_url)
    else:
        pkg = parse_pkg_path(pkg_path)
        client = GitHubClient(session)

    pkg.version = _query(parts, _VERSION_PARAM) or LATEST_VERSION
    joined = "/".join(p for p in (_host_name(parts), parts.path, pkg.version) if p)
    pkg.location = posixpath.normpath(joined) if joined else ""
    return DownloadContext(gh_client=client, http_client=session, pkg=pkg)


def find_release_asset(file_name: str, assets: list[dict[str, Any]]) -> dict[str, Any]:
    """Return the asset called *file_name*."""
    for asset in assets:
        if asset.get("name") == file_name:
            return asset
    raise GitHubError(
        f"repository does not contain release for platform {_goos()} {_goarch()}"
    )


def get_plugin_release(client: GitHubClient, pkg: PackageQuery) -> dict[str, Any]:
    """Return the release asset of *pkg* for the current platform."""
    _log.info("Downloading plugin from GitHub repo '%s/%s'", pkg.owner, pkg.repo)
    try:
        if pkg.version == LATEST_VERSION:
            release = client.latest_release(pkg.owner, pkg.repo)
        else:
            release = client.release_by_tag(pkg.owner, pkg.repo, pkg.version)
    except GitHubError as err:
        raise GitHubError(f"failed to get release information from GitHub, {err}") from err

    asset_name = pkg.file_name()
    _log.debug("github: trying to find release asset '%s'", asset_name)
    return find_release_asset(asset_name, release.get("assets") or [])


def get_plugin(uri: str | SplitResult) -> str:
    """Return the local path of a GitHub-hosted plugin, downloading it if needed."""
    dc = read_url(uri)
    directory = storage.path(storage.StorageType.PLUGINS, dc.pkg.directory())
    plugin_path = os.path.join(directory, dc.pkg.file_name())

    if not exists(plugin_path):
        _log.debug("github: plugin is not cached and need to be downloaded")
        _log.debug("github: init plugin directory: '%s'", directory)
        os.makedirs(directory, mode=PLUGIN_PERMISSIONS, exist_ok=True)

        asset = get_plugin_release(dc.gh_client, dc.pkg)
        asset_url = asset.get("browser_download_url") or ""
        if not asset_url:
            raise GitHubError("missing asset download URL")

        _log.debug("github: downloading plugin from '%s'...", asset_url)
        progress_download_file(dc.http_client, asset_url, plugin_path)

    return plugin_path