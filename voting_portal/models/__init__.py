"""Domain records."""

from .announcement import Announcement
from .ballot import Ballot
from .subject import Subject, SubjectRole

__all__ = ["Announcement", "Ballot", "Subject", "SubjectRole"]
