from __future__ import annotations

from sqlalchemy import (
    ForeignKey,
    Index,
    Numeric,
    PrimaryKeyConstraint,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from ens_indexer.app.infrastructure.db.db_base import BaseDB, ENS_SCHEMA


class TokensDB(BaseDB):
    """
    ENS name tokens (ERC-721 ids of the base registrar).

    One row = one token id (decimal string of the uint256 labelhash) with its
    current owner, expiry and best-effort descriptive metadata.
    """

    __tablename__ = "tokens"
    __table_args__ = (
        PrimaryKeyConstraint("id"),
        Index("ix_tokens_owner", "owner_id"),
        Index("ix_tokens_contract", "contract_id"),
        {"schema": ENS_SCHEMA},
    )

    id: Mapped[str] = mapped_column(Text, nullable=False)

    owner_id: Mapped[str | None] = mapped_column(
        Text,
        ForeignKey(f"{ENS_SCHEMA}.owners.id"),
        nullable=True,
    )
    contract_id: Mapped[str | None] = mapped_column(
        Text,
        ForeignKey(f"{ENS_SCHEMA}.contracts.id"),
        nullable=True,
    )

    # Descriptive metadata (empty strings when the metadata service failed)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    uri: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Unix seconds
    expires: Mapped[int | None] = mapped_column(Numeric, nullable=True)
