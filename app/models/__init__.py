from app.models.attachment import Attachment
from app.models.auth_magic_link import AuthMagicLink
from app.models.base import Base
from app.models.comment import Comment
from app.models.notification import Notification
from app.models.project import Project
from app.models.task import Task
from app.models.team import Team, TeamMember
from app.models.user import User

__all__ = [
    "Base",
    "User",
    "Team",
    "TeamMember",
    "Project",
    "Task",
    "Comment",
    "Attachment",
    "Notification",
    "AuthMagicLink",
]
