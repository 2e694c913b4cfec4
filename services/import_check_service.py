"""
Import Check Service - Detect unchanged register releases.

The regulator publishes each register as a set of spreadsheet files. An
import whose sorted file list equals the last successful import of the same
type has nothing new, so importers can report "no change" without parsing.
"""

import json
import logging
from typing import Iterable, Mapping, Union

from sqlalchemy.orm import Session

from backend.models.schema import UkeImportMetadata

logger = logging.getLogger(__name__)

IMPORT_TYPES = ('stations', 'radiolines', 'stations_permits', 'permits')

FileLink = Union[str, Mapping[str, str]]


def _file_list(file_links: Iterable[FileLink]) -> str:
    hrefs = [link if isinstance(link, str) else link['href'] for link in file_links]
    return json.dumps(sorted(hrefs), separators=(',', ':'))


def _check_import_type(import_type: str) -> None:
    if import_type not in IMPORT_TYPES:
        raise ValueError(f"Unsupported import type: {import_type}")


class ImportCheckService:
    """Reads and records import metadata."""

    def __init__(self, db_session: Session):
        """
        Initialize import check service.

        Args:
            db_session: SQLAlchemy database session
        """
        self.session = db_session

    def is_data_up_to_date(self, import_type: str, file_links: Iterable[FileLink]) -> bool:
        """
        Check whether file_links were already imported successfully.

        Args:
            import_type: One of IMPORT_TYPES
            file_links: Source file URLs, or dicts with an 'href' key

        Returns:
            True if the latest successful import of import_type used exactly
            the same files
        """
        _check_import_type(import_type)

        latest = self.session.query(UkeImportMetadata).filter(
            UkeImportMetadata.import_type == import_type,
            UkeImportMetadata.status == 'success'
        ).order_by(
            UkeImportMetadata.last_import_date.desc(),
            UkeImportMetadata.id.desc()
        ).first()

        if latest is None:
            return False
        return latest.file_list == _file_list(file_links)

    def record_import_metadata(self, import_type: str, file_links: Iterable[FileLink],
                               status: str) -> UkeImportMetadata:
        """
        Record the outcome of an import.

        Args:
            import_type: One of IMPORT_TYPES
            file_links: Source file URLs used by the import
            status: 'success' or 'failed'
        """
        _check_import_type(import_type)
        if status not in ('success', 'failed'):
            raise ValueError(f"Unsupported import status: {status}")

        entry = UkeImportMetadata(
            import_type=import_type,
            file_list=_file_list(file_links),
            status=status
        )
        self.session.add(entry)
        self.session.commit()

        logger.info(f"Recorded {status} {import_type} import")
        return entry
