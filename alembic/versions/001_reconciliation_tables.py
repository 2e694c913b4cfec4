"""create reconciliation tables

Revision ID: 001_reconciliation_tables
Revises:
Create Date: 2025-10-15 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_reconciliation_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create tables used by the reconciliation stages.

    Tables created:
    - stations: Base stations
    - uke_permits: Station permits imported from UKE
    - stations_permits: Station to permit associations
    - uke_import_metadata: History of UKE imports
    """

    op.create_table(
        'stations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('station_id', sa.String(length=64), nullable=False, comment='Operator station identifier'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('station_id'),
        comment='Base stations'
    )
    op.create_index('idx_stations_station_id', 'stations', ['station_id'])

    op.create_table(
        'uke_permits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('station_id', sa.String(length=64), nullable=False, comment='Station identifier as published in the register'),
        sa.Column('permit_number', sa.String(length=128), nullable=True, comment='Permit decision number'),
        sa.PrimaryKeyConstraint('id'),
        comment='Station permits imported from UKE'
    )
    op.create_index('idx_uke_permits_station_id', 'uke_permits', ['station_id'])

    op.create_table(
        'stations_permits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('station_id', sa.Integer(), nullable=False),
        sa.Column('permit_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['station_id'], ['stations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['permit_id'], ['uke_permits.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('station_id', 'permit_id', name='stations_permits_station_permit_key'),
        comment='Station to permit associations'
    )
    op.create_index('idx_stations_permits_permit_id', 'stations_permits', ['permit_id'])

    op.create_table(
        'uke_import_metadata',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('import_type', sa.String(length=32), nullable=False, comment='Kind of import'),
        sa.Column('file_list', sa.Text(), nullable=False, comment='JSON array of sorted source file URLs'),
        sa.Column('status', sa.String(length=16), nullable=False, comment='Import outcome'),
        sa.Column('last_import_date', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Import timestamp'),
        sa.CheckConstraint(
            "import_type IN ('stations', 'radiolines', 'stations_permits', 'permits')",
            name='uke_import_metadata_import_type_check'
        ),
        sa.CheckConstraint("status IN ('success', 'failed')", name='uke_import_metadata_status_check'),
        sa.PrimaryKeyConstraint('id'),
        comment='History of UKE imports'
    )
    op.create_index('idx_uke_import_metadata_type_status', 'uke_import_metadata', ['import_type', 'status'])


def downgrade() -> None:
    """
    Remove reconciliation tables.
    """
    op.drop_index('idx_uke_import_metadata_type_status', table_name='uke_import_metadata')
    op.drop_table('uke_import_metadata')

    op.drop_index('idx_stations_permits_permit_id', table_name='stations_permits')
    op.drop_table('stations_permits')

    op.drop_index('idx_uke_permits_station_id', table_name='uke_permits')
    op.drop_table('uke_permits')

    op.drop_index('idx_stations_station_id', table_name='stations')
    op.drop_table('stations')
