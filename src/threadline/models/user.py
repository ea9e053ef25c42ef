"""SQLAlchemy models for pseudonymous user identities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from threadline.db.session import Base
from threadline.db.time import utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    """Pseudonymous account that authors posts, comments and votes.

    Credentials live with the external auth collaborator; this row only
    carries what the forum needs to attribute content and check ownership.
    """

    __tablename__ = "user_account"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_user_account_role"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False, default=ROLE_USER)
    karma: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def is_admin(self) -> bool:
        """Return True when the account carries the admin role."""
        return self.role == ROLE_ADMIN
