"""Project board: projects, columns and tasks kept in positional order.

Every move computes one new key with :func:`compute_next_status_order`
and writes only the moved row.
"""
import logging
from typing import Any, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from .errors import NotFoundError, ValidationError
from .models import Project, ProjectColumn, ProjectStatus, Task, User
from .ordering import POSITION_STEP, compute_next_status_order, initial_positions, sibling_keys
from .storage.repositories import ColumnRepository, ProjectRepository, TaskRepository, UserRepository

logger = logging.getLogger(__name__)

MAX_COLUMNS = 10


class ProjectNotFoundError(NotFoundError):
    pass


async def _get_project(session: AsyncSession, project_id: int) -> Project:
    project = await ProjectRepository(session).get(project_id)
    if project is None:
        raise ProjectNotFoundError(f"Project {project_id} not found")
    return project


async def _get_column(session: AsyncSession, column_id: int, project_id: Optional[int] = None) -> ProjectColumn:
    column = await ColumnRepository(session).get(column_id)
    if column is None or (project_id is not None and column.project_id != project_id):
        raise NotFoundError(f"Column {column_id} not found")
    return column


async def _get_task(session: AsyncSession, task_id: int) -> Task:
    task = await TaskRepository(session).get(task_id)
    if task is None:
        raise NotFoundError(f"Task {task_id} not found")
    return task


async def _check_assignee(session: AsyncSession, assignee_id: Optional[int]) -> None:
    if assignee_id is not None and await UserRepository(session).get(assignee_id) is None:
        raise ValidationError(f"Assignee {assignee_id} does not exist")


def _without(items: Sequence[Any], item_id: Optional[int]) -> list:
    return [item for item in items if item.id != item_id]


def _append_key(keys: Sequence[Optional[int]], step: int) -> int:
    return compute_next_status_order(keys, len(keys), step)


# Projects

async def create_project(
    session: AsyncSession,
    owner: User,
    title: str,
    columns: Sequence[dict],
    description: Optional[str] = None,
    color: str = "blue",
    status: str = ProjectStatus.PLANNING.value,
    step: int = POSITION_STEP,
) -> Project:
    """Create a project, appended to its status group, with 1..10 columns."""
    if not 1 <= len(columns) <= MAX_COLUMNS:
        raise ValidationError(f"A project needs between 1 and {MAX_COLUMNS} columns")

    peers = await ProjectRepository(session).list_by_status(status)
    project = Project(
        title=title,
        description=description,
        color=color,
        status=status,
        status_order=_append_key(sibling_keys(peers, "status_order"), step),
        owner_id=owner.id,
    )
    session.add(project)
    await session.flush()

    for seed, position in zip(columns, initial_positions(len(columns), step)):
        session.add(ProjectColumn(
            project_id=project.id,
            title=seed["title"],
            color=seed.get("color") or "gray",
            position=position,
        ))

    await session.commit()
    await session.refresh(project)
    logger.info(f"Project {project.id} created with {len(columns)} column(s)")
    return project


async def update_project(session: AsyncSession, project_id: int, changes: dict[str, Any]) -> Project:
    project = await _get_project(session, project_id)
    for field, value in changes.items():
        setattr(project, field, value)
    await session.commit()
    await session.refresh(project)
    return project


async def delete_project(session: AsyncSession, project_id: int) -> None:
    project = await _get_project(session, project_id)
    await session.delete(project)
    await session.commit()


async def move_project(
    session: AsyncSession,
    project_id: int,
    dest_index: int,
    status: Optional[str] = None,
    step: int = POSITION_STEP,
) -> Project:
    """Move a project to ``dest_index`` within ``status`` (default: its current status)."""
    project = await _get_project(session, project_id)
    target_status = status or project.status

    peers = _without(await ProjectRepository(session).list_by_status(target_status), project.id)
    project.status = target_status
    project.status_order = compute_next_status_order(
        sibling_keys(peers, "status_order"), dest_index, step
    )
    await session.commit()
    await session.refresh(project)
    logger.debug(f"Project {project.id} moved to {target_status}[{dest_index}] key={project.status_order}")
    return project


async def get_board(session: AsyncSession, project_id: int) -> tuple[Project, list[tuple[ProjectColumn, list[Task]]]]:
    """A project with its columns and their tasks, all in display order."""
    project = await _get_project(session, project_id)
    columns = await ColumnRepository(session).list_by_project(project_id)
    tasks = await TaskRepository(session).list_by_columns([column.id for column in columns])

    by_column: dict[int, list[Task]] = {column.id: [] for column in columns}
    for task in tasks:
        by_column[task.column_id].append(task)
    return project, [(column, by_column[column.id]) for column in columns]


# Columns

async def add_column(
    session: AsyncSession,
    project_id: int,
    title: str,
    color: str = "gray",
    dest_index: Optional[int] = None,
    step: int = POSITION_STEP,
) -> ProjectColumn:
    await _get_project(session, project_id)
    peers = await ColumnRepository(session).list_by_project(project_id)
    if len(peers) >= MAX_COLUMNS:
        raise ValidationError(f"A project can have at most {MAX_COLUMNS} columns")

    keys = sibling_keys(peers)
    index = len(keys) if dest_index is None else dest_index
    column = ProjectColumn(
        project_id=project_id,
        title=title,
        color=color,
        position=compute_next_status_order(keys, index, step),
    )
    session.add(column)
    await session.commit()
    await session.refresh(column)
    return column


async def update_column(
    session: AsyncSession, project_id: int, column_id: int, changes: dict[str, Any]
) -> ProjectColumn:
    column = await _get_column(session, column_id, project_id)
    for field, value in changes.items():
        setattr(column, field, value)
    await session.commit()
    await session.refresh(column)
    return column


async def delete_column(session: AsyncSession, project_id: int, column_id: int) -> None:
    column = await _get_column(session, column_id, project_id)
    peers = await ColumnRepository(session).list_by_project(project_id)
    if len(peers) <= 1:
        raise ValidationError("A project must keep at least one column")
    await session.delete(column)
    await session.commit()


async def move_column(
    session: AsyncSession,
    project_id: int,
    column_id: int,
    dest_index: int,
    step: int = POSITION_STEP,
) -> ProjectColumn:
    column = await _get_column(session, column_id, project_id)
    peers = _without(await ColumnRepository(session).list_by_project(project_id), column.id)
    column.position = compute_next_status_order(sibling_keys(peers), dest_index, step)
    await session.commit()
    await session.refresh(column)
    return column


# Tasks

async def create_task(
    session: AsyncSession,
    column_id: int,
    fields: dict[str, Any],
    dest_index: Optional[int] = None,
    step: int = POSITION_STEP,
) -> Task:
    await _get_column(session, column_id)
    await _check_assignee(session, fields.get("assignee_id"))

    keys = sibling_keys(await TaskRepository(session).list_by_column(column_id))
    index = len(keys) if dest_index is None else dest_index
    task = Task(column_id=column_id, position=compute_next_status_order(keys, index, step), **fields)
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


async def get_task(session: AsyncSession, task_id: int) -> Task:
    return await _get_task(session, task_id)


async def update_task(session: AsyncSession, task_id: int, changes: dict[str, Any]) -> Task:
    task = await _get_task(session, task_id)
    if "assignee_id" in changes:
        await _check_assignee(session, changes["assignee_id"])
    for field, value in changes.items():
        setattr(task, field, value)
    await session.commit()
    await session.refresh(task)
    return task


async def delete_task(session: AsyncSession, task_id: int) -> None:
    task = await _get_task(session, task_id)
    await session.delete(task)
    await session.commit()


async def move_task(
    session: AsyncSession,
    task_id: int,
    dest_index: int,
    column_id: Optional[int] = None,
    step: int = POSITION_STEP,
) -> Task:
    """Move a task within its column or into another column of the same project."""
    task = await _get_task(session, task_id)
    target_id = column_id if column_id is not None else task.column_id
    if target_id != task.column_id:
        source = await _get_column(session, task.column_id)
        await _get_column(session, target_id, source.project_id)

    peers = _without(await TaskRepository(session).list_by_column(target_id), task.id)
    task.column_id = target_id
    task.position = compute_next_status_order(sibling_keys(peers), dest_index, step)
    await session.commit()
    await session.refresh(task)
    return task


async def bulk_update_tasks(
    session: AsyncSession,
    task_ids: Sequence[int],
    changes: dict[str, Any],
) -> list[Task]:
    """Apply the same changes to several tasks in one transaction.

    Raises:
        NotFoundError: any task id is unknown (nothing is changed)
    """
    ids = list(dict.fromkeys(task_ids))
    tasks = await TaskRepository(session).get_many(ids)
    found = {task.id for task in tasks}
    missing = [task_id for task_id in ids if task_id not in found]
    if missing:
        raise NotFoundError("One or more tasks not found", {"missing": missing})
    if "assignee_id" in changes:
        await _check_assignee(session, changes["assignee_id"])

    for task in tasks:
        for field, value in changes.items():
            setattr(task, field, value)
    await session.commit()
    for task in tasks:
        await session.refresh(task)
    return sorted(tasks, key=lambda task: ids.index(task.id))
