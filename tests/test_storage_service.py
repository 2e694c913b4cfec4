"""
Tests for download directory cleanup.
"""

from services.storage_service import StorageService


class TestCleanupDownloads:

    def test_missing_directory(self, tmp_path):
        service = StorageService(download_dir=str(tmp_path / 'downloads'))

        assert service.cleanup_downloads() == 0

    def test_removes_files_and_directory(self, tmp_path):
        service = StorageService(download_dir=str(tmp_path / 'downloads'))
        download_dir = service.ensure_download_dir()
        (download_dir / 'stations.xlsx').write_bytes(b'x')
        (download_dir / 'permits.xlsx').write_bytes(b'y')

        assert service.cleanup_downloads() == 2
        assert not download_dir.exists()

    def test_keeps_directory_with_subdirectories(self, tmp_path):
        service = StorageService(download_dir=str(tmp_path / 'downloads'))
        download_dir = service.ensure_download_dir()
        (download_dir / 'stations.xlsx').write_bytes(b'x')
        (download_dir / 'nested').mkdir()

        assert service.cleanup_downloads() == 1
        assert download_dir.exists()
        assert not (download_dir / 'stations.xlsx').exists()

    def test_ensure_is_idempotent(self, tmp_path):
        service = StorageService(download_dir=str(tmp_path / 'a' / 'b'))

        service.ensure_download_dir()
        service.ensure_download_dir()

        assert (tmp_path / 'a' / 'b').is_dir()
