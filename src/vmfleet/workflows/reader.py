"""Archive reader - Enumerates the entries of a downloaded bundle."""

import zipfile
import zlib
from pathlib import Path
from typing import Protocol

from .exceptions import ArchiveCorrupt


class ArchiveReader(Protocol):
    """Protocol for bundle readers."""

    def open(self, path: Path) -> list[tuple[str, bytes]]:
        """
        Read every file entry of the archive at `path`.

        Returns:
            List of (entry_name, content) in archive order

        Raises:
            ArchiveCorrupt: If the archive is missing or malformed
        """
        ...


class ZipArchiveReader:
    """Reader for zip bundles."""

    def open(self, path: Path) -> list[tuple[str, bytes]]:
        try:
            with zipfile.ZipFile(path) as archive:
                return [(info.filename, archive.read(info)) for info in archive.infolist() if not info.is_dir()]
        except zipfile.BadZipFile as e:
            raise ArchiveCorrupt(f"Bad zip file: {e}") from e
        except (zlib.error, EOFError) as e:
            raise ArchiveCorrupt(f"Corrupt zip data: {e}") from e
        except zipfile.LargeZipFile as e:
            raise ArchiveCorrupt(f"Unsupported zip file: {e}") from e
        except OSError as e:
            raise ArchiveCorrupt(f"Cannot read {path}: {e}") from e
