"""
Land a remote URL in a temporary file.

Two backends, picked by ``IMPORTER_FETCH_BACKEND``:
    - ``curl``: ``curl --fail -L -o <tmp> <url>`` through the process runner
    - ``requests``: streamed in-process with a progress bar
Both fail loudly on HTTP errors and follow redirects.
"""
from __future__ import annotations

import logging
import os
import uuid
from typing import Optional

import requests
from tqdm import tqdm

from . import config
from .errors import DownloadError, PreconditionError
from .process import run

logger = logging.getLogger(__name__)


def temp_output_path(directory: str) -> str:
    """A temp landing name unique to this process and call."""
    name = f"{config.TMP_OUTPUT}.{os.getpid()}.{uuid.uuid4().hex[:8]}"
    return os.path.join(directory, name) if directory else name


def fetch_url(url: str, dest: str, backend: Optional[str] = None) -> None:
    backend = backend or config.fetch_backend()
    if backend == "curl":
        _fetch_with_curl(url, dest)
    elif backend == "requests":
        _fetch_with_requests(url, dest)
    else:
        raise PreconditionError(f"Unknown fetch backend {backend!r} (expected 'curl' or 'requests')")


def _fetch_with_curl(url: str, dest: str) -> None:
    run([config.CURL, "--fail", "-L", "-o", dest, url])


def _fetch_with_requests(url: str, dest: str) -> None:
    try:
        with requests.get(url, stream=True, timeout=config.http_timeout(), allow_redirects=True) as response:
            response.raise_for_status()
            total_size = int(response.headers.get("content-length", 0))
            with open(dest, "wb") as f, tqdm(
                desc=os.path.basename(url.split("?", 1)[0]) or dest,
                total=total_size,
                unit="iB",
                unit_scale=True,
                unit_divisor=1024,
            ) as progress_bar:
                for chunk in response.iter_content(chunk_size=config.CHUNK_SIZE):
                    size = f.write(chunk)
                    progress_bar.update(size)
    except requests.RequestException as exc:
        raise DownloadError(f"Failed to download {url}: {exc}") from exc
