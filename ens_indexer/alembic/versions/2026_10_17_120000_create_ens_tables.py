"""create_ens_tables

Revision ID: 2026_10_17_120000
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '2026_10_17_120000'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute('CREATE SCHEMA IF NOT EXISTS ens')

    op.create_table(
        'contracts',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('symbol', sa.Text(), nullable=False),
        sa.Column('total_supply', sa.Numeric(), nullable=False),
        sa.Column('number_field', sa.Numeric(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_contracts'),
        schema='ens',
    )
    op.create_index('ix_contracts_name', 'contracts', ['name'], schema='ens')

    op.create_table(
        'legacy_contracts',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('symbol', sa.Text(), nullable=False),
        sa.Column('total_supply', sa.Numeric(), nullable=False),
        sa.Column('custom_field', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_legacy_contracts'),
        schema='ens',
    )
    op.create_index('ix_legacy_contracts_name', 'legacy_contracts', ['name'], schema='ens')

    op.create_table(
        'owners',
        sa.Column('id', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_owners'),
        schema='ens',
    )

    op.create_table(
        'tokens',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('owner_id', sa.Text(), nullable=True),
        sa.Column('contract_id', sa.Text(), nullable=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('image_uri', sa.Text(), nullable=True),
        sa.Column('uri', sa.Text(), nullable=True),
        sa.Column('expires', sa.Numeric(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['ens.owners.id'], name='fk_tokens_owner_id_owners'),
        sa.ForeignKeyConstraint(['contract_id'], ['ens.contracts.id'], name='fk_tokens_contract_id_contracts'),
        sa.PrimaryKeyConstraint('id', name='pk_tokens'),
        schema='ens',
    )
    op.create_index('ix_tokens_owner', 'tokens', ['owner_id'], schema='ens')
    op.create_index('ix_tokens_contract', 'tokens', ['contract_id'], schema='ens')

    op.create_table(
        'transfers',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('block', sa.BigInteger(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('transaction_hash', sa.Text(), nullable=False),
        sa.Column('from_id', sa.Text(), nullable=False),
        sa.Column('to_id', sa.Text(), nullable=False),
        sa.Column('token_id', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['from_id'], ['ens.owners.id'], name='fk_transfers_from_id_owners'),
        sa.ForeignKeyConstraint(['to_id'], ['ens.owners.id'], name='fk_transfers_to_id_owners'),
        sa.ForeignKeyConstraint(['token_id'], ['ens.tokens.id'], name='fk_transfers_token_id_tokens'),
        sa.PrimaryKeyConstraint('id', name='pk_transfers'),
        schema='ens',
    )
    op.create_index('ix_transfers_token_block', 'transfers', ['token_id', 'block'], schema='ens')
    op.create_index('ix_transfers_from', 'transfers', ['from_id'], schema='ens')
    op.create_index('ix_transfers_to', 'transfers', ['to_id'], schema='ens')
    op.create_index('ix_transfers_tx', 'transfers', ['transaction_hash'], schema='ens')


def downgrade() -> None:
    op.drop_table('transfers', schema='ens')
    op.drop_table('tokens', schema='ens')
    op.drop_table('owners', schema='ens')
    op.drop_table('legacy_contracts', schema='ens')
    op.drop_table('contracts', schema='ens')
