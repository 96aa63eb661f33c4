"""
API Services Layer.

Database operations behind the routers. Every function takes the request's
``AsyncSession`` and commits its own unit of work.
"""

from api.services.openings import (
    get_opening,
    list_openings,
    create_opening,
    update_opening,
    delete_opening,
)

from api.services.applications import (
    apply_to_opening,
    list_applications_for_opening,
    list_my_applications,
    update_application_status,
)

from api.services.teams import (
    ensure_team,
    enroll_member,
    generate_team_code,
    list_my_teams,
    list_team_members,
    list_team_messages,
    send_team_message,
)

from api.services.chat import (
    list_direct_messages,
    send_direct_message,
    list_conversations,
)

from api.services.users import (
    get_user,
    register_user,
    authenticate_user,
    update_me,
)

__all__ = [
    # Openings
    "get_opening",
    "list_openings",
    "create_opening",
    "update_opening",
    "delete_opening",
    # Applications
    "apply_to_opening",
    "list_applications_for_opening",
    "list_my_applications",
    "update_application_status",
    # Teams
    "ensure_team",
    "enroll_member",
    "generate_team_code",
    "list_my_teams",
    "list_team_members",
    "list_team_messages",
    "send_team_message",
    # Direct messages
    "list_direct_messages",
    "send_direct_message",
    "list_conversations",
    # Users
    "get_user",
    "register_user",
    "authenticate_user",
    "update_me",
]
