"""
Authenticated Session for cohost-bot.

A Session is what a successful login returns. It exposes the post
operations: create, edit, share and delete.

Usage:
    >>> session = Session.login("bot@example.com", "hunter2")
    >>> post_id = session.create_post("my-project", Post(markdown="hello"))
    >>> session.share_post("my-project", post_id, Post())
    >>> session.delete_post("my-project", post_id)
"""
import logging
from typing import Optional, TYPE_CHECKING

from .client import CohostClient

if TYPE_CHECKING:
    from .post import Post

logger = logging.getLogger(__name__)


class Session:
    """Logged-in handle on cohost.

    Sessions only reference their client, so they can be shared; all of them
    use the client's login cookie.

    Attributes:
        client: CohostClient holding the login cookie
        user_id: ID of the logged-in user
    """

    def __init__(self, client: CohostClient, user_id: int):
        self.client = client
        self.user_id = user_id

    def __repr__(self) -> str:
        return f"<Session user_id={self.user_id} base_url={self.client.base_url!r}>"

    @classmethod
    def login(cls, email: str, password: str, client: Optional[CohostClient] = None) -> "Session":
        """Log in with an email and password.

        Args:
            email: Account email address
            password: Account password
            client: Client to log in with (default: new CohostClient for cohost.org)
        """
        return (client or CohostClient()).login(email, password)

    def create_post(self, project: str, post: "Post") -> int:
        """Create a post, returning its ID."""
        return post.send(self.client, "POST", f"project/{project}/posts", project)

    def edit_post(self, project: str, post_id: int, post: "Post") -> int:
        """Replace the contents of an existing post, returning its ID."""
        return post.send(self.client, "PUT", f"project/{project}/posts/{post_id}", project)

    def share_post(self, project: str, shared_post_id: int, post: "Post") -> int:
        """Share another post, with post as the added content (may be empty).

        Returns:
            ID of the new post
        """
        return post.send(
            self.client,
            "POST",
            f"project/{project}/posts",
            project,
            share_of_post_id=shared_post_id,
        )

    def delete_post(self, project: str, post_id: int) -> None:
        """Delete a post.

        Raises:
            RequestError: Unless the server answers 2xx
        """
        self.client.request("DELETE", f"project/{project}/posts/{post_id}")
        logger.info(f"Deleted post {post_id} from {project}")
