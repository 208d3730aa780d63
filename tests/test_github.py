import os

import pytest
import requests
import responses

from gilbert import github, storage
from gilbert.github import (
    DownloadContext,
    GitHubClient,
    GitHubError,
    PackageQuery,
    find_release_asset,
    get_plugin,
    get_plugin_release,
    parse_enterprise_url,
    parse_pkg_path,
    read_url,
)


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.setattr(storage, "_storage_dir", None)
    monkeypatch.setenv(storage.STORE_VAR_NAME, str(tmp_path))
    return tmp_path


def test_read_url_requires_host():
    with pytest.raises(GitHubError, match="please specify github host"):
        read_url("github:///owner/repo")


@pytest.mark.parametrize("uri", ["github://github.com/owner", "github://github.com/"])
def test_read_url_requires_owner_and_repo(uri):
    with pytest.raises(GitHubError, match="bad GitHub repo path format"):
        read_url(uri)


def test_read_url_default_domain():
    dc = read_url("github://github.com/owner/repo")
    assert dc.pkg.owner == "owner"
    assert dc.pkg.repo == "repo"
    assert dc.pkg.version == "latest"
    assert dc.pkg.location == "github.com/owner/repo/latest"
    assert dc.gh_client.base_url == github.DEFAULT_API_URL
    assert "Authorization" not in dc.http_client.headers


def test_read_url_version_and_token():
    dc = read_url("github://github.com/owner/repo?version=v1.0&token=token")
    assert dc.pkg.version == "v1.0"
    assert dc.pkg.location == "github.com/owner/repo/v1.0"
    assert dc.http_client.headers["Authorization"] == "Bearer token"


def test_read_url_enterprise():
    dc = read_url("github://git.example.com/custom/owner/repo")
    assert (dc.pkg.owner, dc.pkg.repo) == ("owner", "repo")
    assert dc.gh_client.base_url == "https://git.example.com/custom/api/v3/"


def test_parse_pkg_path():
    pkg = parse_pkg_path(["owner", "repo", "extra"])
    assert (pkg.owner, pkg.repo) == ("owner", "repo")


def test_parse_enterprise_url_with_prefix_and_protocol():
    url, pkg = parse_enterprise_url(
        "github://git.example.com:8080/a/b/owner/repo?protocol=http",
        ["a", "b", "owner", "repo"],
    )
    assert url == "http://git.example.com:8080/a/b"
    assert (pkg.owner, pkg.repo) == ("owner", "repo")


def test_parse_enterprise_url_without_prefix():
    url, pkg = parse_enterprise_url("github://git.example.com/owner/repo", ["owner", "repo"])
    assert url == "https://git.example.com"
    assert (pkg.owner, pkg.repo) == ("owner", "repo")


def test_package_query_file_name_and_directory():
    first = PackageQuery(owner="o", repo="repo", location="github.com/o/repo/latest")
    second = PackageQuery(owner="o", repo="repo", location="github.com/o/repo/v2")
    assert first.file_name().startswith("repo_")
    assert first.directory().startswith("github" + os.sep)
    assert first.directory() != second.directory()
    assert first.directory() == PackageQuery(location=first.location).directory()


def test_find_release_asset():
    assets = [{"name": "a"}, {"name": "b", "browser_download_url": "u"}]
    assert find_release_asset("b", assets) == assets[1]
    with pytest.raises(GitHubError, match="repository does not contain release for platform"):
        find_release_asset("c", assets)


def test_get_plugin_release_by_tag():
    pkg = PackageQuery(owner="owner", repo="repo", version="v1.0")
    asset = {"name": pkg.file_name(), "browser_download_url": "https://example.com/x"}
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            "https://api.github.com/repos/owner/repo/releases/tags/v1.0",
            json={"assets": [{"name": "other"}, asset]},
        )
        client = GitHubClient(requests.Session())
        assert get_plugin_release(client, pkg) == asset


def test_get_plugin_release_reports_api_failure():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            "https://api.github.com/repos/owner/repo/releases/latest",
            status=404,
        )
        client = GitHubClient(requests.Session())
        with pytest.raises(GitHubError, match="failed to get release information from GitHub"):
            get_plugin_release(client, PackageQuery(owner="owner", repo="repo", version="latest"))


def test_get_plugin_downloads_and_caches(store):
    file_name = PackageQuery(repo="repo").file_name()
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            "https://api.github.com/repos/owner/repo/releases/latest",
            json={"assets": [{"name": file_name, "browser_download_url": "https://example.com/dl"}]},
        )
        rsps.add(responses.GET, "https://example.com/dl", body=b"plugin-bytes")

        plugin_path = get_plugin("github://github.com/owner/repo?token=token")
        assert os.path.basename(plugin_path) == file_name
        assert str(store) in plugin_path
        with open(plugin_path, "rb") as handle:
            assert handle.read() == b"plugin-bytes"
        assert rsps.calls[0].request.headers["Authorization"] == "Bearer token"

        assert get_plugin("github://github.com/owner/repo") == plugin_path
        assert len(rsps.calls) == 2


def test_get_plugin_missing_download_url(store):
    file_name = PackageQuery(repo="repo").file_name()
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            "https://api.github.com/repos/owner/repo/releases/latest",
            json={"assets": [{"name": file_name}]},
        )
        with pytest.raises(GitHubError, match="missing asset download URL"):
            get_plugin("github://github.com/owner/repo")


def test_download_context_holds_parts():
    session = requests.Session()
    client = GitHubClient(session, "https://example.com/api")
    dc = DownloadContext(gh_client=client, http_client=session)
    assert dc.gh_client.base_url == "https://example.com/api/"
    assert dc.pkg == PackageQuery()