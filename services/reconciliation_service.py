"""
Reconciliation Service - Maintain station to permit associations.

After stations or permits are re-imported, links between them are derived
again: links whose endpoints disappeared or no longer share a station
identifier are pruned, then every permit is linked to the station carrying
its identifier.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from api.config import settings
from backend.database import get_db_session
from backend.models.schema import Station, UkePermit, StationPermit
from services.import_check_service import ImportCheckService

logger = logging.getLogger(__name__)


def _chunks(items: List, size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


class ReconciliationService:
    """Derives the stations_permits table from stations and permits."""

    def __init__(self, db_session: Session, batch_size: Optional[int] = None):
        """
        Initialize reconciliation service.

        Args:
            db_session: SQLAlchemy database session
            batch_size: Links inserted per flush (default: settings.ASSOCIATION_BATCH_SIZE)
        """
        self.session = db_session
        self.batch_size = max(1, batch_size or settings.ASSOCIATION_BATCH_SIZE)

    def prune_stations_permits(self) -> int:
        """
        Remove stale station-permit links.

        A link is stale when its station or permit no longer exists, or when
        the permit's station identifier no longer matches the station.

        Returns:
            Number of links removed
        """
        station_ids: Dict[int, str] = dict(self.session.query(Station.id, Station.station_id).all())
        permit_station_ids: Dict[int, str] = dict(
            self.session.query(UkePermit.id, UkePermit.station_id).all()
        )

        stale_ids = []
        for link in self.session.query(StationPermit).all():
            station_code = station_ids.get(link.station_id)
            permit_code = permit_station_ids.get(link.permit_id)
            if station_code is None or permit_code is None or station_code != permit_code:
                stale_ids.append(link.id)

        for group in _chunks(stale_ids, self.batch_size):
            self.session.query(StationPermit).filter(
                StationPermit.id.in_(group)
            ).delete(synchronize_session=False)
        self.session.commit()

        logger.info(f"Pruned {len(stale_ids)} stale station-permit associations")
        return len(stale_ids)

    def associate_stations_with_permits(self) -> bool:
        """
        Link every permit to the station with the same station identifier.

        Existing links are kept; only missing ones are inserted.

        Returns:
            True if any link was created
        """
        check = ImportCheckService(self.session)

        permits = self.session.query(UkePermit.id, UkePermit.station_id).all()
        logger.info(f"Found {len(permits)} permits")
        if not permits:
            logger.info("No permits found, skipping association")
            check.record_import_metadata('stations_permits', [], 'success')
            return False

        permit_station_ids = {station_id for _, station_id in permits}
        station_map: Dict[str, int] = {
            code: pk for pk, code in self.session.query(Station.id, Station.station_id).filter(
                Station.station_id.in_(permit_station_ids)
            ).all()
        }
        logger.info(f"Found {len(station_map)} matching stations for {len(permit_station_ids)} station IDs")

        existing: Set[Tuple[int, int]] = set(
            self.session.query(StationPermit.station_id, StationPermit.permit_id).all()
        )

        associations = []
        for permit_id, code in permits:
            station_pk = station_map.get(code)
            if station_pk is not None and (station_pk, permit_id) not in existing:
                associations.append((station_pk, permit_id))
                existing.add((station_pk, permit_id))

        if not associations:
            logger.info("No associations to create")
            check.record_import_metadata('stations_permits', [], 'success')
            return False

        logger.info(f"Creating {len(associations)} associations")
        for group in _chunks(associations, self.batch_size):
            self.session.add_all([
                StationPermit(station_id=station_pk, permit_id=permit_id)
                for station_pk, permit_id in group
            ])
            self.session.flush()
        self.session.commit()

        check.record_import_metadata('stations_permits', [], 'success')
        logger.info("Association completed successfully")
        return True


def prune_stations_permits() -> int:
    """Prune stale associations using a fresh database session."""
    with get_db_session() as session:
        return ReconciliationService(session).prune_stations_permits()


def associate_stations_with_permits() -> bool:
    """Create missing associations using a fresh database session."""
    with get_db_session() as session:
        return ReconciliationService(session).associate_stations_with_permits()
