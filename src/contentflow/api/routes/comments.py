"""Comment endpoints"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.integrations.manager import NotificationService
from ...core.models import Comment, Content, User, UserRole
from ...core.permissions import CONTENT_COMMENT, CONTENT_VIEW, is_role_at_least
from ...core.schemas.content import CommentCreate, CommentResponse
from ...core.storage.repositories import CommentRepository
from ..dependencies import get_notifier, get_session, require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_comment(session: AsyncSession, content_id: int, comment_id: int) -> Comment:
    comment = await session.get(Comment, comment_id)
    if not comment or comment.content_id != content_id:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


@router.post("/content/{content_id}/comments", response_model=CommentResponse, status_code=201)
async def create_comment(
    content_id: int,
    data: CommentCreate,
    user: User = Depends(require_permission(CONTENT_COMMENT)),
    session: AsyncSession = Depends(get_session),
    notifier: NotificationService = Depends(get_notifier),
):
    """Add a comment. The author is notified unless they wrote it."""
    try:
        if not await session.get(Content, content_id):
            raise HTTPException(status_code=404, detail="Content not found")

        comment = Comment(content_id=content_id, user_id=user.id, text=data.text)
        session.add(comment)
        await session.commit()
        await session.refresh(comment)

        await notifier.comment_added(content_id, comment.user_id, comment.text)
        return comment

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error adding comment to content {content_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/content/{content_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    content_id: int,
    user: User = Depends(require_permission(CONTENT_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    if not await session.get(Content, content_id):
        raise HTTPException(status_code=404, detail="Content not found")
    return await CommentRepository(session).get_by_content_id(content_id)


@router.patch("/content/{content_id}/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    content_id: int,
    comment_id: int,
    data: CommentCreate,
    user: User = Depends(require_permission(CONTENT_COMMENT)),
    session: AsyncSession = Depends(get_session),
):
    try:
        comment = await _get_comment(session, content_id, comment_id)
        if comment.user_id != user.id:
            raise HTTPException(status_code=403, detail="You can only edit your own comments")

        comment.text = data.text
        await session.commit()
        await session.refresh(comment)
        return comment

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating comment {comment_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/content/{content_id}/comments/{comment_id}", status_code=204)
async def delete_comment(
    content_id: int,
    comment_id: int,
    user: User = Depends(require_permission(CONTENT_COMMENT)),
    session: AsyncSession = Depends(get_session),
):
    """Delete a comment. Moderators and admins may delete anyone's."""
    try:
        comment = await _get_comment(session, content_id, comment_id)
        if comment.user_id != user.id and not is_role_at_least(user.role, UserRole.MODERATOR):
            raise HTTPException(status_code=403, detail="You can only delete your own comments")

        await session.delete(comment)
        await session.commit()
        return Response(status_code=204)

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting comment {comment_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
