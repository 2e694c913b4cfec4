"""
Storage Service - Temporary download directory management.

Importers download the regulator's spreadsheets into a shared directory;
this module creates and removes it.
"""

import logging
from pathlib import Path
from typing import Optional

from api.config import settings

logger = logging.getLogger(__name__)


class StorageService:
    """
    Framework-agnostic storage service for downloaded files.
    """

    def __init__(self, download_dir: Optional[str] = None):
        """
        Initialize storage service.

        Args:
            download_dir: Directory holding downloaded spreadsheets
                (default: settings.DOWNLOAD_DIR)
        """
        self.download_dir = Path(download_dir or settings.DOWNLOAD_DIR)

    def ensure_download_dir(self) -> Path:
        """Ensure the download directory exists."""
        self.download_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Download directory ensured: {self.download_dir}")
        return self.download_dir

    def cleanup_downloads(self) -> int:
        """
        Delete every downloaded file and then the directory itself.

        Files that cannot be deleted are logged and left behind; the
        directory is then kept as well.

        Returns:
            Number of files deleted
        """
        if not self.download_dir.exists():
            return 0

        deleted_count = 0
        for file_path in self.download_dir.iterdir():
            if not file_path.is_file():
                continue
            try:
                file_path.unlink()
                deleted_count += 1
                logger.debug(f"Deleted download: {file_path}")
            except OSError as e:
                logger.error(f"Error deleting download {file_path}: {e}")

        if not any(self.download_dir.iterdir()):
            self.download_dir.rmdir()

        logger.info(f"Cleaned up {deleted_count} downloaded files")
        return deleted_count


def cleanup_downloads() -> int:
    """Remove the configured download directory."""
    return StorageService().cleanup_downloads()
