"""
Posts and the Publish Pipeline for cohost-bot.

A Post describes a post's contents. Session.create_post, edit_post and
share_post all publish through Post.send, which runs in up to two phases:

    1. POST (create) or PUT (edit) the post. If any attachment is still
       pending, the post is forced into the draft state and pending
       attachments are sent with an empty ID.
    2. Upload every pending attachment to the now known post ID, all at once,
       then PUT the post again with the real attachment IDs and its real
       draft flag.

Known Failure Mode:
    A failure after the first request leaves the post on the server as a
    draft, possibly with some attachments uploaded but not shown. Nothing is
    rolled back or retried. If the final PUT fails, FinalizeError carries the
    post ID; calling Session.edit_post with the same Post finishes the job
    (uploaded attachments are not uploaded again). If an upload fails, the
    failed attachment must be recreated before the post can be sent again.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .attachment import Attachment
from .errors import EmptyPostError, FailedAttachmentError, FinalizeError, NoProjectError, RequestError
from .schema import POST_RESPONSE_SCHEMA

if TYPE_CHECKING:
    from .client import CohostClient

logger = logging.getLogger(__name__)

POST_STATE_DRAFT = 0
POST_STATE_PUBLISHED = 1


def split_markdown(markdown: str) -> List[str]:
    """Split markdown into blocks at blank lines.

    Each block is rendered on its own by cohost, which is what makes a
    "---" block act as a "read more" break.

    Example:
        >>> split_markdown("a\\n\\nb\\n\\nc")
        ['a', 'b', 'c']
    """
    if not markdown:
        return []
    return markdown.split("\n\n")


def attachment_block(attachment: Attachment) -> Dict[str, Any]:
    """Wire block for an attachment. Unresolved IDs are sent as ""."""
    attachment_id = attachment.attachment_id
    return {
        "type": "attachment",
        "attachment": {
            "altText": attachment.alt_text,
            "attachmentId": str(attachment_id) if attachment_id is not None else "",
        },
    }


def markdown_block(content: str) -> Dict[str, Any]:
    return {"type": "markdown", "markdown": {"content": content}}


@dataclass
class Post:
    """Describes a post's contents.

    Sending a Post uploads its pending attachments and updates them in place,
    so a Post must not be sent twice at the same time.

    Attributes:
        headline: Displayed above attachments and markdown
        markdown: Markdown body, displayed after attachments
        attachments: Attachments, displayed between headline and markdown
        tags: List of tags
        content_warnings: List of content warnings
        adult_content: Marks the post as adult content
        draft: Keep the post as a draft, visible only through the draft link
        share_of_post_id: ID of the post this post shares, if any

    Example:
        >>> post = Post(headline="hello", markdown="first\\n\\n---\\n\\nbelow the fold")
        >>> post_id = session.create_post("my-project", post)
    """
    headline: str = ""
    markdown: str = ""
    attachments: List[Attachment] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    content_warnings: List[str] = field(default_factory=list)
    adult_content: bool = False
    draft: bool = False
    share_of_post_id: Optional[int] = None

    def is_empty(self) -> bool:
        """True if the post has no headline, attachments or markdown."""
        return not self.headline and not self.markdown and not self.attachments

    def to_api(self, force_draft: bool = False, share_of_post_id: Optional[int] = None) -> Dict[str, Any]:
        """Build the JSON body of a create or edit request.

        Args:
            force_draft: Send postState 0 regardless of the draft flag
            share_of_post_id: Shared post ID; defaults to self.share_of_post_id

        Returns:
            Request body dictionary
        """
        if share_of_post_id is None:
            share_of_post_id = self.share_of_post_id

        blocks = [attachment_block(attachment) for attachment in self.attachments]
        blocks.extend(markdown_block(content) for content in split_markdown(self.markdown))

        payload: Dict[str, Any] = {
            "adultContent": self.adult_content,
            "blocks": blocks,
            "cws": list(self.content_warnings),
            "headline": self.headline,
            "postState": POST_STATE_DRAFT if force_draft or self.draft else POST_STATE_PUBLISHED,
            "tags": list(self.tags),
        }
        if share_of_post_id is not None:
            payload["shareOfPostId"] = share_of_post_id
        logger.debug(f"Post payload: {payload}")
        return payload

    def send(
        self,
        client: "CohostClient",
        method: str,
        path: str,
        project: str,
        share_of_post_id: Optional[int] = None,
    ) -> int:
        """Create or edit this post, uploading pending attachments.

        Args:
            client: Logged-in CohostClient
            method: "POST" to create, "PUT" to edit
            path: API path of the create or edit request
            project: Handle of the project owning the post
            share_of_post_id: Shared post ID; defaults to self.share_of_post_id

        Returns:
            ID of the created or edited post

        Raises:
            NoProjectError: If project is empty
            EmptyPostError: If the post is empty and not a share
            FailedAttachmentError: If an attachment already failed to upload
            RequestError: If a request fails (see module docstring for the
                server-side state left behind)
            FinalizeError: If the final PUT after the uploads fails
        """
        if share_of_post_id is None:
            share_of_post_id = self.share_of_post_id

        if not project:
            raise NoProjectError()
        if self.is_empty() and share_of_post_id is None:
            raise EmptyPostError()
        if any(attachment.is_failed for attachment in self.attachments):
            raise FailedAttachmentError()

        pending = [attachment for attachment in self.attachments if attachment.is_pending]
        needs_upload = bool(pending)

        response = client.request(
            method,
            path,
            json=self.to_api(force_draft=needs_upload, share_of_post_id=share_of_post_id),
            schema=POST_RESPONSE_SCHEMA,
        )
        post_id = response["postId"]
        logger.info(f"{method} {path} -> post {post_id}")

        if not needs_upload:
            return post_id

        logger.info(f"Uploading {len(pending)} attachment(s) to post {post_id}")
        self._upload_all(client, project, post_id, pending)

        finalize_path = f"project/{project}/posts/{post_id}"
        try:
            client.request(
                "PUT",
                finalize_path,
                json=self.to_api(force_draft=False, share_of_post_id=share_of_post_id),
            )
        except RequestError as e:
            logger.error(f"Post {post_id} is stuck as a draft: finalizing failed: {e}")
            raise FinalizeError(
                f"attachments uploaded but finalizing post {post_id} failed: {e}",
                post_id=post_id,
                status_code=e.status_code,
            ) from e

        logger.info(f"Post {post_id} finalized with {len(pending)} new attachment(s)")
        return post_id

    @staticmethod
    def _upload_all(
        client: "CohostClient",
        project: str,
        post_id: int,
        pending: List[Attachment],
    ) -> None:
        """Upload attachments in parallel, up to one worker each.

        The first error seen is raised. Other uploads are not cancelled:
        every submitted upload, queued or running, finishes before the error
        leaves this method.
        """
        with ThreadPoolExecutor(max_workers=len(pending)) as executor:
            futures = [
                executor.submit(attachment.upload, client, project, post_id)
                for attachment in pending
            ]
            for future in as_completed(futures):
                error = future.exception()
                if error is not None:
                    raise error
