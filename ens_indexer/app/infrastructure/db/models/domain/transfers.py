from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    ForeignKey,
    Index,
    PrimaryKeyConstraint,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from ens_indexer.app.infrastructure.db.db_base import BaseDB, ENS_SCHEMA


class TransfersDB(BaseDB):
    """
    Append-only ownership transfers of ENS name tokens.

    Idempotency:
      - PK is the synthetic event id "txHash-contract-tokenId-logIndex", unique
        even for several transfers of one token inside a single transaction.
    """

    __tablename__ = "transfers"
    __table_args__ = (
        PrimaryKeyConstraint("id"),
        Index("ix_transfers_token_block", "token_id", "block"),
        Index("ix_transfers_from", "from_id"),
        Index("ix_transfers_to", "to_id"),
        Index("ix_transfers_tx", "transaction_hash"),
        {"schema": ENS_SCHEMA},
    )

    id: Mapped[str] = mapped_column(Text, nullable=False)

    block: Mapped[int] = mapped_column(BigInteger, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)  # unix seconds
    transaction_hash: Mapped[str] = mapped_column(Text, nullable=False)

    from_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey(f"{ENS_SCHEMA}.owners.id"),
        nullable=False,
    )
    to_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey(f"{ENS_SCHEMA}.owners.id"),
        nullable=False,
    )
    token_id: Mapped[str] = mapped_column(
        Text,
        ForeignKey(f"{ENS_SCHEMA}.tokens.id"),
        nullable=False,
    )
