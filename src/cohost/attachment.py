"""
Attachments for cohost-bot Posts.

An Attachment is one piece of media (image, audio, or any other file) shown
between a post's headline and its markdown. It moves through three states:

    Pending  --upload ok-->  Uploaded (attachment ID + CDN URL)
       |
       +------upload error-->  Failed (terminal)

The state is an owned value that is replaced as a whole on every transition.
The pending byte stream is taken out before the upload starts, so a failed
upload cannot be retried: recreate the Attachment from the original content.

Upload Sub-protocol:
    1. start: announce filename, type, length and metadata; the server answers
       with an attachment ID, an upload URL and required form fields
       (REST "attach/start" or tRPC "posts.attachment.start")
    2. multipart POST of the required fields plus the file to the upload URL
    3. finish: the server answers with the final attachment ID and CDN URL
"""
import io
import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union, TYPE_CHECKING

from PIL import Image

from .errors import CohostIOError, ContentLengthError, FailedAttachmentError
from .schema import (
    ATTACHMENT_START_RESPONSE_SCHEMA,
    ATTACHMENT_FINISH_RESPONSE_SCHEMA,
    TRPC_RESPONSE_SCHEMA,
    validate_payload,
)

if TYPE_CHECKING:
    from .client import CohostClient

logger = logging.getLogger(__name__)

# content_length is an unsigned 64-bit integer on the wire
MAX_CONTENT_LENGTH = 2 ** 64 - 1


@dataclass(frozen=True)
class ImageMetadata:
    """Pixel dimensions of an image attachment."""
    width: int
    height: int


@dataclass(frozen=True)
class AudioMetadata:
    """Tags of an audio attachment."""
    artist: str = ""
    title: str = ""


Metadata = Union[ImageMetadata, AudioMetadata]


@dataclass
class Pending:
    stream: BinaryIO
    filename: str
    content_type: str
    content_length: int
    metadata: Optional[Metadata] = None


@dataclass(frozen=True)
class Uploaded:
    attachment_id: uuid.UUID
    url: str


@dataclass(frozen=True)
class Failed:
    pass


FAILED = Failed()


def _check_length(content_length: int) -> int:
    if content_length > MAX_CONTENT_LENGTH:
        raise ContentLengthError(
            f"attachment length {content_length} does not fit the 64-bit length field"
        )
    return content_length


def probe_metadata(path: Union[str, Path], content_type: str) -> Optional[Metadata]:
    """Best-effort metadata for a file based on its content type.

    Images are opened with Pillow, which only reads the header to get the
    pixel dimensions. Audio gets empty tags. Anything else, or any probing
    error, gives None.
    """
    if content_type.startswith("image/"):
        try:
            with Image.open(path) as img:
                width, height = img.size
            return ImageMetadata(width=width, height=height)
        except Exception as e:
            logger.debug(f"Could not read image dimensions of {path}: {e}")
            return None
    if content_type.startswith("audio/"):
        return AudioMetadata()
    return None


class Attachment:
    """An attachment on a Post.

    Attachments start out pending. When the owning Post is created or edited
    the attachment is uploaded and becomes uploaded, or failed if any upload
    step goes wrong.

    Attributes:
        alt_text: Alt text shown for the attachment (empty by default)

    Example:
        >>> attachment = Attachment(b"...png bytes...", "cat.png", "image/png",
        ...                         metadata=ImageMetadata(640, 480))
        >>> attachment.is_pending
        True
    """

    def __init__(
        self,
        content: Union[bytes, bytearray, memoryview],
        filename: str,
        content_type: str,
        metadata: Optional[Metadata] = None,
        alt_text: str = "",
    ):
        """Create a pending attachment from an in-memory buffer.

        Args:
            content: File content
            filename: File name reported to the server
            content_type: MIME type (e.g., "image/png")
            metadata: Optional ImageMetadata or AudioMetadata
            alt_text: Alt text for the attachment

        Raises:
            ContentLengthError: If the content is longer than the wire length field allows
        """
        content = bytes(content)
        self._state: Union[Pending, Uploaded, Failed] = Pending(
            stream=io.BytesIO(content),
            filename=filename,
            content_type=content_type,
            content_length=_check_length(len(content)),
            metadata=metadata,
        )
        self.alt_text = alt_text

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        content_type: str,
        metadata: Optional[Metadata] = None,
        alt_text: str = "",
    ) -> "Attachment":
        """Create a pending attachment streamed from a file on disk.

        The file is opened now and read only while uploading. When metadata is
        not given, image dimensions are probed (see probe_metadata).

        Args:
            path: Path of the file
            content_type: MIME type (e.g., "image/png")
            metadata: Optional metadata; skips probing when given
            alt_text: Alt text for the attachment

        Raises:
            CohostIOError: If the file cannot be opened or stat-ed
            ContentLengthError: If the file is too large for the wire length field
        """
        path = Path(path)
        filename = path.name or "file"

        try:
            stream = open(path, "rb")
        except OSError as e:
            raise CohostIOError(f"cannot open attachment {path}: {e}") from e
        try:
            content_length = _check_length(os.fstat(stream.fileno()).st_size)
        except OSError as e:
            stream.close()
            raise CohostIOError(f"cannot stat attachment {path}: {e}") from e
        except ContentLengthError:
            stream.close()
            raise

        if metadata is None:
            metadata = probe_metadata(path, content_type)

        return cls._from_pending(
            Pending(
                stream=stream,
                filename=filename,
                content_type=content_type,
                content_length=content_length,
                metadata=metadata,
            ),
            alt_text,
        )

    @classmethod
    def _from_pending(cls, pending: Pending, alt_text: str) -> "Attachment":
        attachment = cls.__new__(cls)
        attachment._state = pending
        attachment.alt_text = alt_text
        return attachment

    def close(self) -> None:
        """Close the pending stream of an attachment that will not be uploaded."""
        if isinstance(self._state, Pending):
            self._state.stream.close()

    def with_alt_text(self, alt_text: str) -> "Attachment":
        """Set alt text, returning self for chaining."""
        self.alt_text = alt_text
        return self

    @property
    def is_pending(self) -> bool:
        """True if the attachment has not been uploaded yet."""
        return isinstance(self._state, Pending)

    @property
    def is_uploaded(self) -> bool:
        return isinstance(self._state, Uploaded)

    @property
    def is_failed(self) -> bool:
        """True if the upload failed. Failed attachments cannot be recovered."""
        return isinstance(self._state, Failed)

    @property
    def attachment_id(self) -> Optional[uuid.UUID]:
        """Server-assigned ID once uploaded, otherwise None."""
        if isinstance(self._state, Uploaded):
            return self._state.attachment_id
        return None

    @property
    def url(self) -> Optional[str]:
        """CDN URL once uploaded, otherwise None."""
        if isinstance(self._state, Uploaded):
            return self._state.url
        return None

    def __repr__(self) -> str:
        state = self._state
        if isinstance(state, Pending):
            detail = f"pending {state.filename!r} ({state.content_type}, {state.content_length} bytes)"
        elif isinstance(state, Uploaded):
            detail = f"uploaded {state.attachment_id}"
        else:
            detail = "failed"
        return f"<Attachment {detail}>"

    def upload(self, client: "CohostClient", project: str, post_id: int) -> None:
        """Upload the attachment to a post.

        Does nothing if already uploaded. Any error leaves the attachment
        failed for good.

        Args:
            client: Logged-in CohostClient
            project: Handle of the project owning the post
            post_id: ID of the post the attachment belongs to

        Raises:
            FailedAttachmentError: If the attachment already failed
            RequestError: If any of the upload requests fails
            CohostIOError: If the local stream cannot be read
        """
        state, self._state = self._state, FAILED
        if isinstance(state, Uploaded):
            self._state = state
            return
        if isinstance(state, Failed):
            raise FailedAttachmentError()

        try:
            start = self._start(client, project, post_id, state)
            attachment_id = start["attachmentId"]
            logger.info(f"Uploading {state.filename} as attachment {attachment_id} of post {post_id}")

            client.upload_form(
                start["url"],
                start["requiredFields"],
                state.filename,
                state.stream,
                state.content_type,
            )

            finished = client.request(
                "POST",
                f"project/{project}/posts/{post_id}/attach/finish/{attachment_id}",
                schema=ATTACHMENT_FINISH_RESPONSE_SCHEMA,
            )
        except Exception:
            logger.error(f"Upload of {state.filename} to post {post_id} failed; attachment is now unusable")
            raise
        finally:
            state.stream.close()

        self._state = Uploaded(
            attachment_id=uuid.UUID(finished["attachmentId"]),
            url=finished["url"],
        )
        logger.info(f"Attachment {finished['attachmentId']} uploaded: {finished['url']}")

    def _start(self, client: "CohostClient", project: str, post_id: int, state: Pending) -> Dict[str, Any]:
        """Run the start step with the client's attachment API flavour."""
        if client.attachment_api == "trpc":
            body: Dict[str, Any] = {
                "projectHandle": project,
                "postId": post_id,
                "filename": state.filename,
                "contentType": state.content_type,
                "contentLength": state.content_length,
            }
            if isinstance(state.metadata, ImageMetadata):
                body["width"] = state.metadata.width
                body["height"] = state.metadata.height
            elif isinstance(state.metadata, AudioMetadata):
                body["metadata"] = {"artist": state.metadata.artist, "title": state.metadata.title}

            envelope = client.request(
                "POST", "trpc/posts.attachment.start", json=body, schema=TRPC_RESPONSE_SCHEMA
            )
            data = envelope["result"]["data"]
            validate_payload(data, ATTACHMENT_START_RESPONSE_SCHEMA)
            return data

        body = {
            "filename": state.filename,
            "content_type": state.content_type,
            "content_length": state.content_length,
        }
        if isinstance(state.metadata, ImageMetadata):
            body["width"] = state.metadata.width
            body["height"] = state.metadata.height
        elif isinstance(state.metadata, AudioMetadata):
            body["artist"] = state.metadata.artist
            body["title"] = state.metadata.title

        return client.request(
            "POST",
            f"project/{project}/posts/{post_id}/attach/start",
            json=body,
            schema=ATTACHMENT_START_RESPONSE_SCHEMA,
        )
