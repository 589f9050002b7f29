"""Project board schemas"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.content import Priority
from ..models.project import ProjectStatus


class ColumnSeed(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    color: str = Field(default="gray", max_length=50)


DEFAULT_COLUMNS = [
    ColumnSeed(title="To Do", color="gray"),
    ColumnSeed(title="In Progress", color="blue"),
    ColumnSeed(title="Review", color="yellow"),
    ColumnSeed(title="Done", color="green"),
]


class ProjectCreate(BaseModel):
    """Schema for creating a project with its initial columns."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    color: str = Field(default="blue", max_length=50)
    status: ProjectStatus = Field(default=ProjectStatus.PLANNING)
    columns: list[ColumnSeed] = Field(
        default_factory=lambda: [column.model_copy() for column in DEFAULT_COLUMNS],
        min_length=1,
        max_length=10,
        description="Initial columns, in order",
    )

    model_config = ConfigDict(use_enum_values=True)


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=50)

    model_config = ConfigDict(use_enum_values=True)


class ProjectReorder(BaseModel):
    """Move a project to ``dest_index`` within ``status`` (its own status if omitted)."""
    dest_index: int
    status: Optional[ProjectStatus] = None

    model_config = ConfigDict(use_enum_values=True)


class ProjectResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    color: str
    status: str
    status_order: Optional[int]
    owner_id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ColumnCreate(ColumnSeed):
    dest_index: Optional[int] = Field(None, description="Insert position; appended when omitted")


class ColumnUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=50)


class ColumnReorder(BaseModel):
    dest_index: int


class ColumnResponse(BaseModel):
    id: int
    project_id: int
    title: str
    color: str
    position: Optional[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskCreate(BaseModel):
    column_id: int
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Priority = Field(default=Priority.MEDIUM)
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    dest_index: Optional[int] = Field(None, description="Insert position; appended when omitted")

    model_config = ConfigDict(use_enum_values=True)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    assignee_id: Optional[int] = None
    completed: Optional[bool] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)

    model_config = ConfigDict(use_enum_values=True)


class TaskMove(BaseModel):
    """Move a task to ``dest_index`` in ``column_id`` (its own column if omitted)."""
    dest_index: int
    column_id: Optional[int] = None


class TaskBulkUpdate(BaseModel):
    task_ids: list[int] = Field(..., min_length=1)
    updates: TaskUpdate

    def changes(self) -> dict[str, Any]:
        return self.updates.model_dump(exclude_unset=True)


class TaskResponse(BaseModel):
    id: int
    column_id: int
    title: str
    description: Optional[str]
    position: Optional[int]
    priority: str
    due_date: Optional[datetime]
    completed: bool
    assignee_id: Optional[int]
    estimated_hours: Optional[float]
    actual_hours: Optional[float]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BoardColumn(ColumnResponse):
    tasks: list[TaskResponse] = Field(default_factory=list)


class BoardResponse(BaseModel):
    project: ProjectResponse
    columns: list[BoardColumn]


class BulkTaskResponse(BaseModel):
    updated: int
    tasks: list[TaskResponse]
