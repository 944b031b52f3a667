"""FastAPI dependencies for the comment system.

Provides dependency injection for:
- Comment service
- Error to HTTP status conversion
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .exceptions import CommentError
from .service import CommentService


async def get_comment_service(request: Request) -> CommentService:
    """Get comment service from app state.

    Raises:
        HTTPException: 503 if the service was not initialized at startup.
    """
    comment_service = getattr(request.app.state, "comment_service", None)
    if comment_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment service not available",
        )
    return comment_service


CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]


def handle_comment_error(error: CommentError) -> HTTPException:
    """Convert comment errors to HTTP exceptions.

    Args:
        error: Comment error

    Returns:
        HTTPException with appropriate status code
    """
    status_map = {
        "invalid_argument": status.HTTP_400_BAD_REQUEST,
        "invalid_identifier": status.HTTP_400_BAD_REQUEST,
        "invalid_target_type": status.HTTP_400_BAD_REQUEST,
        "invalid_media_type": status.HTTP_400_BAD_REQUEST,
        "invalid_pagination": status.HTTP_400_BAD_REQUEST,
        "invalid_path": status.HTTP_400_BAD_REQUEST,
        "media_required": status.HTTP_400_BAD_REQUEST,
        "validation_error": status.HTTP_400_BAD_REQUEST,
        "file_too_large": status.HTTP_400_BAD_REQUEST,
        "not_found": status.HTTP_404_NOT_FOUND,
        "comment_not_found": status.HTTP_404_NOT_FOUND,
        "reply_not_found": status.HTTP_404_NOT_FOUND,
        "reaction_not_found": status.HTTP_404_NOT_FOUND,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )
