"""Persistence layer."""

from .session import build_engine, build_session_factory, session_scope
from .store import SqlVotingStore, VotingStore
from .tables import AnnouncementRecord, Base, BallotRecord, SubjectRecord

__all__ = [
    "AnnouncementRecord",
    "Base",
    "BallotRecord",
    "SqlVotingStore",
    "SubjectRecord",
    "VotingStore",
    "build_engine",
    "build_session_factory",
    "session_scope",
]
