"""Errors raised by the comment repositories and service.

Every error carries a human readable ``message`` and a machine ``code``.
The router converts them to HTTP responses via ``handle_comment_error``.
"""


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


# ==============================================================================
# Invalid argument (400)
# ==============================================================================


class InvalidArgumentError(CommentError):
    """Request data is malformed or not allowed."""

    def __init__(self, message: str, code: str = "invalid_argument"):
        super().__init__(message, code)


class InvalidIdentifierError(InvalidArgumentError):
    """Identifier is not a 24-character hex ObjectId."""

    def __init__(self, value: object, entity: str = "id"):
        super().__init__(f"Invalid {entity} format: {value!r}", "invalid_identifier")


class InvalidTargetTypeError(InvalidArgumentError):
    def __init__(self, value: object):
        super().__init__(
            f"Invalid target type: {value!r}. Must be 'Comment' or 'Reply'",
            "invalid_target_type",
        )


class InvalidMediaTypeError(InvalidArgumentError):
    """Uploaded media does not match the comment type."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_media_type")


class MediaRequiredError(InvalidArgumentError):
    def __init__(self, message: str = "No media file uploaded"):
        super().__init__(message, "media_required")


class InvalidPaginationError(InvalidArgumentError):
    def __init__(self, page: int, limit: int):
        super().__init__(
            f"Page and limit must be >= 1 (got page={page}, limit={limit})",
            "invalid_pagination",
        )


# ==============================================================================
# Not found (404)
# ==============================================================================


class NotFoundError(CommentError):
    """Referenced entity does not exist."""

    def __init__(self, message: str, code: str = "not_found"):
        super().__init__(message, code)


class CommentNotFoundError(NotFoundError):
    def __init__(self, comment_id: str):
        super().__init__(
            f"Comment with ID {comment_id} not found", "comment_not_found"
        )


class ReplyNotFoundError(NotFoundError):
    def __init__(self, reply_id: str):
        super().__init__(f"Reply with ID {reply_id} not found", "reply_not_found")


class ReactionNotFoundError(NotFoundError):
    def __init__(self, reaction_id: str):
        super().__init__(
            f"Reaction with ID {reaction_id} not found", "reaction_not_found"
        )


# ==============================================================================
# Storage failure (500)
# ==============================================================================


class StorageFailureError(CommentError):
    """Media could not be written to storage."""

    def __init__(self, message: str = "Failed to store media file"):
        super().__init__(message, "storage_failure")
