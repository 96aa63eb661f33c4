"""
Domain models. Importing this package registers every table on ``Base.metadata``.
"""

from database.models.users import User, PortfolioProject
from database.models.openings import (
    Opening,
    Role,
    OpeningStatus,
    CollaborationType,
    ProjectStage,
    CommitmentLevel,
    LocationPreference,
)
from database.models.applications import Application, ApplicationStatus
from database.models.teams import Team, TeamMember
from database.models.messages import Message, DirectMessage

__all__ = [
    "User",
    "PortfolioProject",
    "Opening",
    "Role",
    "OpeningStatus",
    "CollaborationType",
    "ProjectStage",
    "CommitmentLevel",
    "LocationPreference",
    "Application",
    "ApplicationStatus",
    "Team",
    "TeamMember",
    "Message",
    "DirectMessage",
]
