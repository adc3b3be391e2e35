"""ORM tables backing the voting store."""
from __future__ import annotations

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from voting_portal.models import SubjectRole


class Base(DeclarativeBase):
    """Base class for all ORM tables."""


class SubjectRecord(Base):
    __tablename__ = "subjects"

    identifier: Mapped[str] = mapped_column(String(64), primary_key=True)
    contact: Mapped[str] = mapped_column(String(320), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[SubjectRole] = mapped_column(
        Enum(SubjectRole, name="subject_role", values_callable=lambda roles: [role.value for role in roles]),
        nullable=False,
        default=SubjectRole.STUDENT,
    )
    has_voted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class BallotRecord(Base):
    """One row per voter; the unique constraint backs the one-vote rule."""

    __tablename__ = "ballots"
    __table_args__ = (UniqueConstraint("voter_identifier", name="uq_ballots_voter_identifier"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voter_identifier: Mapped[str] = mapped_column(
        String(64), ForeignKey("subjects.identifier"), nullable=False
    )
    candidate: Mapped[str] = mapped_column(String(128), nullable=False)
    signature: Mapped[str] = mapped_column(String(64), nullable=False)
    encrypted_payload: Mapped[str] = mapped_column(String, nullable=False)


class AnnouncementRecord(Base):
    """Single-row table holding the current announcement."""

    __tablename__ = "announcements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tally: Mapped[dict] = mapped_column(JSON, nullable=False)
    announced_at: Mapped[str] = mapped_column(String(64), nullable=False)
    signature: Mapped[str] = mapped_column(String(64), nullable=False)


__all__ = ["AnnouncementRecord", "Base", "BallotRecord", "SubjectRecord"]
