from enum import Enum

from app.rbac.roles import Role

class ProjectOperation(str, Enum):
    read = "read"
    create_task = "create-task"
    update = "update"
    delete = "delete"
    manage_members = "manage-members"

class TaskOperation(str, Enum):
    read = "read"
    update = "update"
    delete = "delete"
    comment = "comment"
    attach = "attach"
    update_comment = "update-comment"
    delete_comment = "delete-comment"
    delete_attachment = "delete-attachment"

PROJECT_MIN_ROLE: dict[ProjectOperation, Role] = {
    ProjectOperation.read: Role.viewer,
    ProjectOperation.create_task: Role.viewer,
    ProjectOperation.update: Role.admin,
    ProjectOperation.delete: Role.owner,
    ProjectOperation.manage_members: Role.admin,
}

# None: no project role is enough on its own, only an identity relation
TASK_MIN_ROLE: dict[TaskOperation, Role | None] = {
    TaskOperation.read: Role.viewer,
    TaskOperation.comment: Role.viewer,
    TaskOperation.attach: Role.viewer,
    TaskOperation.update: Role.admin,
    TaskOperation.delete: Role.admin,
    TaskOperation.update_comment: None,
    TaskOperation.delete_comment: Role.admin,
    TaskOperation.delete_attachment: Role.admin,
}

# identity relations that grant the operation regardless of project role.
# the assignee can work on a task but never destroy it.
TASK_BYPASS: dict[TaskOperation, frozenset[str]] = {
    TaskOperation.read: frozenset(),
    TaskOperation.comment: frozenset(),
    TaskOperation.attach: frozenset(),
    TaskOperation.update: frozenset({"reporter", "assignee"}),
    TaskOperation.delete: frozenset({"reporter"}),
    TaskOperation.update_comment: frozenset({"author"}),
    TaskOperation.delete_comment: frozenset({"author"}),
    TaskOperation.delete_attachment: frozenset({"author"}),
}

# which team roles an actor may hand out (and take away)
GRANTABLE_ROLES: dict[Role, set[Role]] = {
    Role.owner: {Role.admin, Role.member, Role.viewer},
    Role.admin: {Role.member, Role.viewer},
}
