"""Dashboard statistics."""

from pydantic import BaseModel, Field


class DashboardStats(BaseModel):
    total_projects: int
    tasks_completed: int
    completion_rate: int
    pending_tasks: int
    overdue_tasks: int
    # value -> count; values that never occur are left out
    status_distribution: dict[str, int] = Field(default_factory=dict)
    priority_distribution: dict[str, int] = Field(default_factory=dict)
