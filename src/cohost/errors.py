"""
Exception Types for cohost-bot.

Every error raised by this package derives from CohostError, so callers can
catch the whole family at once or pick out the cases they can act on.

Validation errors (never retried, raised before any network I/O):
    EmptyPostError: Post has no headline, markdown or attachments and is not a share
    FailedAttachmentError: Post holds an attachment whose upload already failed
    NoProjectError: No project handle was given for the post

Other errors:
    Base64DecodeError: Login salt returned by the server is not valid Base64
    ContentLengthError: Attachment is too large for the wire length field
    CohostIOError: Local file or stream problem while reading an attachment
    RequestError: Connection failure or non-2xx HTTP response
    ResponseValidationError: Response body did not match its JSON schema
    FinalizeError: Attachments uploaded, but the final PUT that publishes the post failed

Partial failures:
    A publish that fails after its first request has already created (or
    updated) the post server-side. The post is then left as a draft with some
    attachments possibly uploaded. Nothing is rolled back. FinalizeError
    carries the post ID so the caller can retry with Session.edit_post.
"""
from typing import Optional


class CohostError(Exception):
    """Base class for all cohost-bot errors."""


class EmptyPostError(CohostError):
    """Raised when a post has no headline, attachments or markdown and is not a share."""

    def __init__(self, message: str = "post is empty (no headline, attachments, or markdown)"):
        super().__init__(message)


class FailedAttachmentError(CohostError):
    """Raised when a post contains an attachment that failed to upload.

    Failed attachments cannot be recovered; recreate the Attachment from its
    original content and replace it in the post.
    """

    def __init__(self, message: str = "attempted to use post with failed attachment"):
        super().__init__(message)


class NoProjectError(CohostError):
    """Raised when no project handle is given for a post."""

    def __init__(self, message: str = "no project specified for post"):
        super().__init__(message)


class Base64DecodeError(CohostError):
    """Raised when the login salt cannot be decoded."""


class ContentLengthError(CohostError, ValueError):
    """Raised when an attachment's length does not fit the unsigned 64-bit length field."""


class CohostIOError(CohostError):
    """Raised on local file or stream errors (opening, stat-ing or reading attachments)."""


class RequestError(CohostError):
    """Raised when a request fails to complete or returns a non-2xx status.

    Attributes:
        status_code: HTTP status code when the server answered, otherwise None
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ResponseValidationError(RequestError):
    """Raised when a response body is not JSON or fails schema validation."""


class FinalizeError(RequestError):
    """Raised when the publishing PUT fails after attachments were uploaded.

    The post exists server-side in the draft state. Its attachments are
    uploaded but not yet referenced by the post.

    Attributes:
        post_id: ID of the post that was created or edited in the first request
    """

    def __init__(self, message: str, post_id: int, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.post_id = post_id
