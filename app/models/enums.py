from enum import Enum

class ProjectStatus(str, Enum):
    planning = "planning"
    active = "active"
    completed = "completed"
    on_hold = "on_hold"

class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in_progress"
    in_review = "in_review"
    completed = "completed"

class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"

class NotificationType(str, Enum):
    task_assigned = "task_assigned"
    task_commented = "task_commented"
    project_member_added = "project_member_added"
