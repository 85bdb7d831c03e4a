"""Physical directory tree under the configured storage root.

Layout on the drive::

    <storage_root>/shared/shared_materials/folders/<logical/path>/material_<id>/
    <storage_root>/shared/shared_materials/uncategorized/material_<id>/

The adapter only maps logical folder paths to directories and performs the
few operations the folder index needs. Material directories inside a folder
move with it and are not addressed here. It never consults the database.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..exceptions import (
    PhysicalCreateFailedError,
    PhysicalRenameFailedError,
    StorageNotConfiguredError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MATERIALS_ROOT = Path("shared") / "shared_materials"
FOLDERS_DIR = MATERIALS_ROOT / "folders"
LOGICAL_SEPARATOR = "/"


class PhysicalTreeAdapter:
    """Maps logical folder paths to absolute directories and manipulates them.

    Public methods:
        folder_dir     -- absolute directory for a logical folder path
        ensure_dir     -- mkdir -p
        dir_exists     -- is there a directory at this location
        rename_dir     -- single rename of a directory
        remove_dir     -- remove an empty directory, best effort
    """

    def __init__(self, storage_root: Union[str, Path, None]):
        self._root: Optional[Path] = Path(storage_root) if storage_root else None

    @property
    def root(self) -> Path:
        if self._root is None:
            raise StorageNotConfiguredError()
        return self._root

    @property
    def is_configured(self) -> bool:
        return self._root is not None

    # ------------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------------

    def folder_dir(self, logical_path: str) -> Path:
        """Absolute directory for *logical_path* (``""`` is the folders root)."""
        base = self.root / FOLDERS_DIR
        segments = [s for s in logical_path.split(LOGICAL_SEPARATOR) if s]
        for segment in segments:
            if segment in (".", "..") or "\\" in segment:
                raise ValidationError(
                    f"Path traversal detected: '{logical_path}' escapes the storage root",
                    field="path",
                )
        return base.joinpath(*segments)

    # ------------------------------------------------------------------
    # Filesystem operations
    # ------------------------------------------------------------------

    def ensure_dir(self, directory: Path) -> None:
        """Create *directory* and any missing parents."""
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                "Directory creation failed",
                extra={"directory": str(directory), "error": str(e)},
            )
            raise PhysicalCreateFailedError(str(directory), e) from e

    def dir_exists(self, directory: Path) -> bool:
        return directory.is_dir()

    def rename_dir(self, source: Path, destination: Path) -> None:
        """Rename *source* to *destination*. No retries."""
        try:
            source.rename(destination)
        except OSError as e:
            logger.error(
                "Directory rename failed",
                extra={"source": str(source), "destination": str(destination), "error": str(e)},
            )
            raise PhysicalRenameFailedError(str(source), str(destination), e) from e
        logger.debug("Renamed directory %s -> %s", source, destination)

    def remove_dir(self, directory: Path) -> bool:
        """Remove *directory* if it is empty. Failures are logged, not raised."""
        try:
            directory.rmdir()
        except OSError as e:
            logger.warning(
                "Directory not removed",
                extra={"directory": str(directory), "error": str(e)},
            )
            return False
        logger.debug("Removed directory %s", directory)
        return True
