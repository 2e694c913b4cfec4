"""
SQLAlchemy models for the UKE import system.

This module defines the tables the reconciliation stages operate on,
matching the schema defined in Alembic migrations. Station and permit rows
are written by the ingestion importers; this service only links them.
"""

from sqlalchemy import (
    Column, Integer, String, Text, TIMESTAMP, ForeignKey, CheckConstraint,
    Index, UniqueConstraint, text
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Station(Base):
    """A base station known to the internal store."""

    __tablename__ = 'stations'
    __table_args__ = (
        Index('idx_stations_station_id', 'station_id'),
        {'comment': 'Base stations'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    station_id = Column(
        String(64),
        nullable=False,
        unique=True,
        comment='Operator station identifier'
    )

    permits = relationship(
        'StationPermit',
        back_populates='station',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<Station(id={self.id}, station_id='{self.station_id}')>"


class UkePermit(Base):
    """A radio permit imported from the UKE register."""

    __tablename__ = 'uke_permits'
    __table_args__ = (
        Index('idx_uke_permits_station_id', 'station_id'),
        {'comment': 'Station permits imported from UKE'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    station_id = Column(
        String(64),
        nullable=False,
        comment='Station identifier as published in the register'
    )
    permit_number = Column(
        String(128),
        nullable=True,
        comment='Permit decision number'
    )

    stations = relationship(
        'StationPermit',
        back_populates='permit',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f"<UkePermit(id={self.id}, station_id='{self.station_id}')>"


class StationPermit(Base):
    """Derived link between a station and a permit carrying its identifier."""

    __tablename__ = 'stations_permits'
    __table_args__ = (
        UniqueConstraint('station_id', 'permit_id', name='stations_permits_station_permit_key'),
        Index('idx_stations_permits_permit_id', 'permit_id'),
        {'comment': 'Station to permit associations'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    station_id = Column(
        Integer,
        ForeignKey('stations.id', ondelete='CASCADE'),
        nullable=False
    )
    permit_id = Column(
        Integer,
        ForeignKey('uke_permits.id', ondelete='CASCADE'),
        nullable=False
    )

    station = relationship('Station', back_populates='permits')
    permit = relationship('UkePermit', back_populates='stations')

    def __repr__(self):
        return f"<StationPermit(station_id={self.station_id}, permit_id={self.permit_id})>"


class UkeImportMetadata(Base):
    """One row per completed import, used to detect unchanged releases."""

    __tablename__ = 'uke_import_metadata'
    __table_args__ = (
        CheckConstraint(
            "import_type IN ('stations', 'radiolines', 'stations_permits', 'permits')",
            name='uke_import_metadata_import_type_check'
        ),
        CheckConstraint(
            "status IN ('success', 'failed')",
            name='uke_import_metadata_status_check'
        ),
        Index('idx_uke_import_metadata_type_status', 'import_type', 'status'),
        {'comment': 'History of UKE imports'}
    )

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        nullable=False
    )
    import_type = Column(
        String(32),
        nullable=False,
        comment='Kind of import'
    )
    file_list = Column(
        Text,
        nullable=False,
        comment='JSON array of sorted source file URLs'
    )
    status = Column(
        String(16),
        nullable=False,
        comment='Import outcome'
    )
    last_import_date = Column(
        TIMESTAMP,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Import timestamp'
    )

    def __repr__(self):
        return f"<UkeImportMetadata(type='{self.import_type}', status='{self.status}')>"
