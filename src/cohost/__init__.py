"""cohost-bot: Bot Client Library for cohost.org.

This package provides programmatic access to a cohost account: logging in,
and creating, editing, sharing and deleting posts with media attachments.

Exported Classes:
    CohostClient: HTTP transport holding the base URL and login cookies
    Session: Authenticated handle returned by login
    Post: Post contents, published through a Session
    Attachment: Media attached to a Post
    ImageMetadata, AudioMetadata: Optional media metadata for attachments

Usage:
    >>> from cohost import Session, Post, Attachment
    >>> session = Session.login("bot@example.com", "hunter2")
    >>> post = Post(headline="hello", attachments=[
    ...     Attachment.from_file("cat.png", "image/png").with_alt_text("a cat")
    ... ])
    >>> post_id = session.create_post("my-project", post)
"""
__version__ = "0.1.0"

from .errors import (
    CohostError,
    EmptyPostError,
    FailedAttachmentError,
    NoProjectError,
    Base64DecodeError,
    ContentLengthError,
    CohostIOError,
    RequestError,
    ResponseValidationError,
    FinalizeError,
)
from .attachment import Attachment, ImageMetadata, AudioMetadata
from .client import CohostClient
from .post import Post
from .session import Session

__all__ = [
    "__version__",
    "CohostClient",
    "Session",
    "Post",
    "Attachment",
    "ImageMetadata",
    "AudioMetadata",
    "CohostError",
    "EmptyPostError",
    "FailedAttachmentError",
    "NoProjectError",
    "Base64DecodeError",
    "ContentLengthError",
    "CohostIOError",
    "RequestError",
    "ResponseValidationError",
    "FinalizeError",
]
