"""
Archive fetcher - Downloads the workflow bundle to the local cache.
"""

import http.client
import logging
import os
import shutil
import tempfile
import urllib.error
import urllib.request
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from ..constants import DEFAULT_DOWNLOAD_TIMEOUT_SECONDS
from .exceptions import FetchFailure

logger = logging.getLogger(__name__)


class ArchiveFetcher(Protocol):
    """Protocol for bundle downloaders."""

    def download(self, url: str, destination: Path) -> None:
        """
        Download `url` to `destination`, overwriting it.

        Raises:
            FetchFailure: On network, HTTP protocol or local I/O errors
        """
        ...

    def last_modified(self, destination: Path) -> datetime | None:
        """Modification time of a previously downloaded file, or None."""
        ...


class UrlArchiveFetcher:
    """
    Fetcher backed by urllib.

    Handles http(s):// and file:// URLs. Data is written to a temporary file
    next to the destination and moved into place, so an interrupted download
    never leaves a truncated archive behind.
    """

    def __init__(self, timeout: float = DEFAULT_DOWNLOAD_TIMEOUT_SECONDS):
        self.timeout = timeout

    def download(self, url: str, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Downloading {url} to {destination}")

        fd, tmp_name = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=".part")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as out, urllib.request.urlopen(url, timeout=self.timeout) as response:
                shutil.copyfileobj(response, out)
            os.replace(tmp_path, destination)
        except urllib.error.HTTPError as e:
            raise FetchFailure(url, f"HTTP {e.code} {e.reason}") from e
        except urllib.error.URLError as e:
            raise FetchFailure(url, str(e.reason)) from e
        except OSError as e:
            raise FetchFailure(url, str(e)) from e
        # Truncated bodies and malformed responses
        except http.client.HTTPException as e:
            raise FetchFailure(url, f"{type(e).__name__}: {e}") from e
        finally:
            tmp_path.unlink(missing_ok=True)

    def last_modified(self, destination: Path) -> datetime | None:
        if not destination.exists():
            return None
        return datetime.fromtimestamp(destination.stat().st_mtime, tz=timezone.utc)
