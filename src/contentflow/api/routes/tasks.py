"""Task endpoints"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ...core import board
from ...core.config import get_config
from ...core.errors import ContentflowError
from ...core.models import User
from ...core.permissions import PROJECT_MANAGE, PROJECT_VIEW
from ...core.schemas.project import BulkTaskResponse, TaskBulkUpdate, TaskCreate, TaskMove, TaskResponse, TaskUpdate
from ..dependencies import get_session, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    data: TaskCreate,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    """Create a task in a column, appended unless ``dest_index`` is given."""
    try:
        fields = data.model_dump(exclude={"column_id", "dest_index"})
        return await board.create_task(
            session, data.column_id, fields, dest_index=data.dest_index, step=get_config().position_step
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating task: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# Declared before /tasks/{task_id} so "bulk" is not parsed as an id
@router.patch("/tasks/bulk", response_model=BulkTaskResponse)
async def bulk_update(
    data: TaskBulkUpdate,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    """Apply the same changes to several tasks; all or nothing."""
    try:
        tasks = await board.bulk_update_tasks(session, data.task_ids, data.changes())
        return BulkTaskResponse(
            updated=len(tasks),
            tasks=[TaskResponse.model_validate(task) for task in tasks],
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error in bulk task update: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    user: User = Depends(require_permission(PROJECT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    return await board.get_task(session, task_id)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await board.update_task(session, task_id, data.model_dump(exclude_unset=True))
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating task {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: int,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    try:
        await board.delete_task(session, task_id)
        return Response(status_code=204)
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting task {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/tasks/{task_id}/move", response_model=TaskResponse)
async def move_task(
    task_id: int,
    data: TaskMove,
    user: User = Depends(require_permission(PROJECT_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    """Move a task within its column or to another column of the same project."""
    try:
        return await board.move_task(
            session, task_id, data.dest_index, column_id=data.column_id, step=get_config().position_step
        )
    except (HTTPException, ContentflowError):
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error moving task {task_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
