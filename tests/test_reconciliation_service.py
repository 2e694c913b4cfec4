"""
Tests for station to permit reconciliation.
"""

from backend.models.schema import Station, StationPermit, UkeImportMetadata, UkePermit
from services.reconciliation_service import ReconciliationService


def _links(session):
    return set(session.query(StationPermit.station_id, StationPermit.permit_id).all())


def _add(session, *rows):
    session.add_all(rows)
    session.commit()
    return rows


class TestAssociate:

    def test_links_permits_to_matching_stations(self, session):
        s1, s2 = _add(session, Station(station_id='WRO001'), Station(station_id='KRK002'))
        p1, p2, p3 = _add(
            session,
            UkePermit(station_id='WRO001', permit_number='A/1'),
            UkePermit(station_id='WRO001', permit_number='A/2'),
            UkePermit(station_id='GDN404', permit_number='B/1'),
        )

        created = ReconciliationService(session, batch_size=1).associate_stations_with_permits()

        assert created is True
        assert _links(session) == {(s1.id, p1.id), (s1.id, p2.id)}

    def test_keeps_existing_links(self, session):
        s1, = _add(session, Station(station_id='WRO001'))
        p1, p2 = _add(session, UkePermit(station_id='WRO001'), UkePermit(station_id='WRO001'))
        _add(session, StationPermit(station_id=s1.id, permit_id=p1.id))

        assert ReconciliationService(session).associate_stations_with_permits() is True
        assert _links(session) == {(s1.id, p1.id), (s1.id, p2.id)}

    def test_nothing_new_returns_false(self, session):
        s1, = _add(session, Station(station_id='WRO001'))
        p1, = _add(session, UkePermit(station_id='WRO001'))
        _add(session, StationPermit(station_id=s1.id, permit_id=p1.id))

        assert ReconciliationService(session).associate_stations_with_permits() is False

    def test_no_permits_returns_false(self, session):
        _add(session, Station(station_id='WRO001'))

        assert ReconciliationService(session).associate_stations_with_permits() is False
        assert _links(session) == set()

    def test_records_import_metadata(self, session):
        _add(session, Station(station_id='WRO001'))
        _add(session, UkePermit(station_id='WRO001'))

        ReconciliationService(session).associate_stations_with_permits()

        entries = session.query(UkeImportMetadata).all()
        assert [(e.import_type, e.status, e.file_list) for e in entries] == [
            ('stations_permits', 'success', '[]')
        ]


class TestPrune:

    def test_removes_links_to_missing_rows(self, session):
        s1, = _add(session, Station(station_id='WRO001'))
        p1, = _add(session, UkePermit(station_id='WRO001'))
        _add(
            session,
            StationPermit(station_id=s1.id, permit_id=p1.id),
            StationPermit(station_id=s1.id, permit_id=9999),
            StationPermit(station_id=9999, permit_id=p1.id),
        )

        removed = ReconciliationService(session, batch_size=1).prune_stations_permits()

        assert removed == 2
        assert _links(session) == {(s1.id, p1.id)}

    def test_removes_links_with_mismatched_identifier(self, session):
        s1, s2 = _add(session, Station(station_id='WRO001'), Station(station_id='KRK002'))
        p1, = _add(session, UkePermit(station_id='KRK002'))
        _add(
            session,
            StationPermit(station_id=s1.id, permit_id=p1.id),
            StationPermit(station_id=s2.id, permit_id=p1.id),
        )

        assert ReconciliationService(session).prune_stations_permits() == 1
        assert _links(session) == {(s2.id, p1.id)}

    def test_nothing_stale(self, session):
        assert ReconciliationService(session).prune_stations_permits() == 0
