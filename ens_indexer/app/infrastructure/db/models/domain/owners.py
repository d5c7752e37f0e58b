from __future__ import annotations

from sqlalchemy import PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from ens_indexer.app.infrastructure.db.db_base import BaseDB, ENS_SCHEMA


class OwnersDB(BaseDB):
    """
    Token holders.

    One row = one lowercase address ever seen as a sender or receiver.
    """

    __tablename__ = "owners"
    __table_args__ = (
        PrimaryKeyConstraint("id"),
        {"schema": ENS_SCHEMA},
    )

    id: Mapped[str] = mapped_column(Text, nullable=False)
