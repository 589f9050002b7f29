"""Project and column endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ...core import board
from ...core.config import get_config
from ...core.errors import ContentflowError
from ...core.models import User
from ...core.permissions import PROJECT_MANAGE, PROJECT_VIEW
from ...core.schemas.project import (
    BoardColumn,
    BoardResponse,
    ColumnCreate,
    ColumnReorder,
    ColumnResponse,
    ColumnUpdate,
    ProjectCreate,
    ProjectReorder,
    ProjectResponse,
    ProjectUpdate,
    TaskResponse,
)
from ...core.storage.repositories import ProjectRepository
from ..dependencies import get_session, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/projects", response_model=ProjectResponse, status_code=201)
async def create_project(
    data: ProjectCreate,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    """Create a project with its initial columns (To Do, In Progress, Review, Done by default)."""
    try:
        return await board.create_project(
            session,
            user,
            title=data.title,
            columns=[column.model_dump() for column in data.columns],
            description=data.description,
            color=data.color,
            status=data.status,
            step=get_config().position_step,
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating project: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/projects", response_model=list[ProjectResponse])
async def list_projects(
    status: Optional[str] = Query(None, description="Only projects with this status"),
    user: User = Depends(require_permission(PROJECT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    """Projects grouped by status, each group in display order."""
    repo = ProjectRepository(session)
    if status:
        return await repo.list_by_status(status)
    return await repo.list_ordered()


@router.get("/projects/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    user: User = Depends(require_permission(PROJECT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    project = await ProjectRepository(session).get(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await board.update_project(session, project_id, data.model_dump(exclude_unset=True))
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/projects/{project_id}", status_code=204)
async def delete_project(
    project_id: int,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    try:
        await board.delete_project(session, project_id)
        return Response(status_code=204)
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects/{project_id}/reorder", response_model=ProjectResponse)
async def reorder_project(
    project_id: int,
    data: ProjectReorder,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    """Move a project within its status group, or into another status group."""
    try:
        return await board.move_project(
            session, project_id, data.dest_index, data.status, step=get_config().position_step
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error reordering project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/projects/{project_id}/board", response_model=BoardResponse)
async def get_board(
    project_id: int,
    user: User = Depends(require_permission(PROJECT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    """The full board: columns in order, each with its tasks in order."""
    project, columns = await board.get_board(session, project_id)
    return BoardResponse(
        project=ProjectResponse.model_validate(project),
        columns=[
            BoardColumn(
                **ColumnResponse.model_validate(column).model_dump(),
                tasks=[TaskResponse.model_validate(task) for task in tasks],
            )
            for column, tasks in columns
        ],
    )


@router.post("/projects/{project_id}/columns", response_model=ColumnResponse, status_code=201)
async def create_column(
    project_id: int,
    data: ColumnCreate,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await board.add_column(
            session,
            project_id,
            data.title,
            color=data.color,
            dest_index=data.dest_index,
            step=get_config().position_step,
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error adding column to project {project_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/projects/{project_id}/columns/{column_id}", response_model=ColumnResponse)
async def update_column(
    project_id: int,
    column_id: int,
    data: ColumnUpdate,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await board.update_column(session, project_id, column_id, data.model_dump(exclude_unset=True))
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating column {column_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/projects/{project_id}/columns/{column_id}", status_code=204)
async def delete_column(
    project_id: int,
    column_id: int,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    """Delete a column and its tasks. The last column cannot be deleted."""
    try:
        await board.delete_column(session, project_id, column_id)
        return Response(status_code=204)
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting column {column_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/projects/{project_id}/columns/{column_id}/reorder", response_model=ColumnResponse)
async def reorder_column(
    project_id: int,
    column_id: int,
    data: ColumnReorder,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await board.move_column(
            session, project_id, column_id, data.dest_index, step=get_config().position_step
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error reordering column {column_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
