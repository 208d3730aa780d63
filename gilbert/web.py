"""File downloads with a terminal progress bar."""

from __future__ import annotations

import os
import sys

import requests
from tqdm import tqdm

_CHUNK_SIZE = 32 * 1024


class DownloadError(Exception):
    """A file could not be downloaded or saved."""


def _download_error(uri: str, message: str) -> DownloadError:
    return DownloadError(f"failed to download from '{uri}': {message}")


def progress_download_file(session: requests.Session, uri: str, destination: str) -> None:
    """Download *uri* to *destination*, showing progress on the terminal.

    Data is written to a temporary file next to the destination and moved
    into place once the download has finished.
    """
    temp_path = f"{destination}.tmp"
    with open(temp_path, "wb") as out:
        try:
            response = session.get(uri, stream=True)
        except requests.RequestException as err:
            raise _download_error(uri, str(err)) from err

        with response:
            if response.status_code != 200:
                raise _download_error(uri, f"{response.status_code} {response.reason}")

            length = response.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None
            with tqdm(
                total=total,
                unit="B",
                unit_scale=True,
                leave=False,
                file=sys.stdout,
            ) as bar:
                try:
                    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                        out.write(chunk)
                        bar.update(len(chunk))
                except (OSError, requests.RequestException) as err:
                    raise DownloadError(f"failed to save downloaded file: {err}") from err

    os.replace(temp_path, destination)