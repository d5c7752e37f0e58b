from __future__ import annotations

from sqlalchemy import Index, Numeric, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from ens_indexer.app.infrastructure.db.db_base import BaseDB, ENS_SCHEMA


class ContractsDB(BaseDB):
    """
    Registrar contract entity.

    One row = one watched contract address. Written once, on first resolution,
    and never updated afterwards.
    """

    __tablename__ = "contracts"
    __table_args__ = (
        PrimaryKeyConstraint("id"),
        Index("ix_contracts_name", "name"),
        {"schema": ENS_SCHEMA},
    )

    id: Mapped[str] = mapped_column(Text, nullable=False)  # lowercase address
    name: Mapped[str] = mapped_column(Text, nullable=False)
    symbol: Mapped[str] = mapped_column(Text, nullable=False)
    total_supply: Mapped[int] = mapped_column(Numeric, nullable=False)
    number_field: Mapped[int | None] = mapped_column(Numeric, nullable=True)


class LegacyContractsDB(BaseDB):
    """Compatibility copy of the contract row kept for older consumers."""

    __tablename__ = "legacy_contracts"
    __table_args__ = (
        PrimaryKeyConstraint("id"),
        Index("ix_legacy_contracts_name", "name"),
        {"schema": ENS_SCHEMA},
    )

    id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    symbol: Mapped[str] = mapped_column(Text, nullable=False)
    total_supply: Mapped[int] = mapped_column(Numeric, nullable=False)
    custom_field: Mapped[str | None] = mapped_column(Text, nullable=True)
