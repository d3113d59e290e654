"""Safe extraction of uploaded repository archives.

Archives are unpacked into ``{base}/{user_id}/{project_id}``. Every entry is
resolved to its canonical path and must land strictly inside the
destination; a single escaping entry aborts the whole upload before any
byte is written (zip-slip defense).
"""

import dataclasses
import logging
import os
import shutil
import stat
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple

from ..core.config import settings
from ..exceptions import ArchiveIOError, PathTraversalError, ValidationError

logger = logging.getLogger(__name__)

# Bytes copied per read when streaming an entry to disk.
COPY_BUFFER_SIZE = 64 * 1024


@dataclasses.dataclass(frozen=True)
class ExtractionStats:
    """Outcome of a successful extraction."""
    destination: str
    file_count: int
    directory_count: int
    total_bytes: int


def _is_symlink(info: zipfile.ZipInfo) -> bool:
    """Symlink entries carry S_IFLNK in the high 16 bits of external_attr."""
    return stat.S_ISLNK(info.external_attr >> 16)


def _validate_segment(value: str, field: str) -> str:
    """User and project identifiers become directory names; keep them to one segment."""
    value = (value or "").strip()
    if (
        not value
        or value in (".", "..")
        or value.startswith(".")
        or "/" in value
        or "\\" in value
        or "\x00" in value
    ):
        raise ValidationError(f"Invalid {field}: {value!r}", field=field)
    return value


class ArchiveService:
    """Extracts uploaded archives into per-user, per-project directories."""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.repository_base_dir)

    def project_path(self, user_id: str, project_id: str) -> Path:
        """Destination directory for a (user, project) pair."""
        user_id = _validate_segment(user_id, "user_id")
        project_id = _validate_segment(project_id, "project_id")
        return self.base_dir / user_id / project_id

    def prepare_destination(self, user_id: str, project_id: str) -> Path:
        """Create an empty destination, deleting any previous extraction."""
        destination = self.project_path(user_id, project_id)
        try:
            if destination.exists():
                logger.info("Project directory %s exists, deleting", destination)
                shutil.rmtree(destination)
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError(
                f"Failed to prepare project directory {destination}: {e}", original_error=e
            ) from e
        return destination

    def extract(self, archive_stream: BinaryIO, user_id: str, project_id: str) -> str:
        """Extract *archive_stream* and return the destination path."""
        return self.extract_with_stats(archive_stream, user_id, project_id).destination

    def extract_with_stats(
        self, archive_stream: BinaryIO, user_id: str, project_id: str
    ) -> ExtractionStats:
        """Extract *archive_stream*, returning counts of what was written.

        Raises:
            ValidationError: user or project id is not a single path segment.
            PathTraversalError: an entry resolves outside the destination.
            ArchiveIOError: the archive is unreadable or a write failed.
                Partially written files are left in place.
        """
        destination = self.prepare_destination(user_id, project_id)
        logger.info("Extracting archive to %s", destination)

        try:
            with zipfile.ZipFile(archive_stream) as archive:
                plan = self._plan_entries(archive, destination)
                stats = self._write_entries(archive, plan, destination)
        except (PathTraversalError, ArchiveIOError):
            raise
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError, EOFError, RuntimeError) as e:
            logger.error("Archive extraction failed for %s: %s", destination, e)
            raise ArchiveIOError(f"Failed to extract archive: {e}", original_error=e) from e

        logger.info(
            "Extraction complete: %d files, %d bytes",
            stats.file_count, stats.total_bytes,
            extra={"destination": stats.destination},
        )
        return stats

    def delete_project_directory(self, user_id: str, project_id: str) -> bool:
        """Remove a project's extracted files. Returns False if nothing was there."""
        destination = self.project_path(user_id, project_id)
        if not destination.exists():
            logger.info("Project directory %s does not exist, nothing to delete", destination)
            return False
        try:
            shutil.rmtree(destination)
        except OSError as e:
            raise ArchiveIOError(
                f"Failed to delete project directory {destination}: {e}", original_error=e
            ) from e
        logger.info("Deleted project directory %s", destination)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _plan_entries(
        archive: zipfile.ZipFile, destination: Path
    ) -> List[Tuple[zipfile.ZipInfo, Path]]:
        """Resolve every entry to its target path, rejecting any that escape."""
        root = os.path.realpath(destination)
        plan: List[Tuple[zipfile.ZipInfo, Path]] = []
        for info in archive.infolist():
            if "\x00" in info.filename or _is_symlink(info):
                raise PathTraversalError(info.filename)
            target = os.path.realpath(os.path.join(root, info.filename))
            if not target.startswith(root + os.sep):
                raise PathTraversalError(info.filename)
            plan.append((info, Path(target)))
        return plan

    @staticmethod
    def _write_entries(
        archive: zipfile.ZipFile,
        plan: List[Tuple[zipfile.ZipInfo, Path]],
        destination: Path,
    ) -> ExtractionStats:
        file_count = 0
        directory_count = 0
        total_bytes = 0

        for info, target in plan:
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                directory_count += 1
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            written = 0
            with archive.open(info) as src, open(target, "wb") as dst:
                while True:
                    chunk = src.read(COPY_BUFFER_SIZE)
                    if not chunk:
                        break
                    dst.write(chunk)
                    written += len(chunk)
            logger.debug("Extracted %s (%d bytes)", target, written)
            file_count += 1
            total_bytes += written

        return ExtractionStats(
            destination=str(destination),
            file_count=file_count,
            directory_count=directory_count,
            total_bytes=total_bytes,
        )
