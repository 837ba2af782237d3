"""
HTTP Client for cohost-bot.

This module provides CohostClient, the transport used by every other part of
the library. It wraps a requests.Session so the login cookie set by POST login
is sent with every later request, prefixes API paths with the configured base
URL, and turns every failure into a RequestError.

Usage:
    >>> client = CohostClient()
    >>> session = client.login("bot@example.com", "hunter2")

    >>> # Against a different deployment, with the tRPC attachment API
    >>> client = CohostClient(base_url="https://staging.example/api/v1", attachment_api="trpc")

Error Handling:
    - Connection errors, timeouts and non-2xx responses raise RequestError
      (status_code set when the server answered)
    - Response bodies that are not JSON or fail schema validation raise
      ResponseValidationError
    - Local read errors while streaming a request body raise CohostIOError
"""
import logging
from typing import Any, Dict, Optional, BinaryIO, TYPE_CHECKING

import requests
from requests_toolbelt import MultipartEncoder

from . import __version__
from .config import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_ATTACHMENT_API,
    ATTACHMENT_APIS,
    get_cohost_settings,
)
from .credentials import derive_client_hash
from .errors import CohostIOError, RequestError, ResponseValidationError
from .schema import SALT_RESPONSE_SCHEMA, LOGIN_RESPONSE_SCHEMA, validate_payload

if TYPE_CHECKING:
    from .session import Session

logger = logging.getLogger(__name__)


class CohostClient:
    """HTTP transport for the cohost API.

    Attributes:
        base_url: API base URL, always ending in "/"
        timeout: Per-request timeout in seconds
        attachment_api: Attachment upload start flavour, "rest" or "trpc"
        http: Underlying requests.Session (holds cookies)
    """

    USER_AGENT = f"cohost-bot/{__version__}"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        attachment_api: str = DEFAULT_ATTACHMENT_API,
    ):
        if attachment_api not in ATTACHMENT_APIS:
            raise ValueError(f"attachment_api must be one of {ATTACHMENT_APIS}, got {attachment_api!r}")

        base_url = base_url or DEFAULT_BASE_URL
        if not base_url.endswith("/"):
            base_url += "/"

        self.base_url = base_url
        self.timeout = timeout
        self.attachment_api = attachment_api
        self.http = requests.Session()
        self.http.headers["User-Agent"] = self.USER_AGENT

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "CohostClient":
        """Create a CohostClient from a configuration dictionary.

        Args:
            config: Configuration dictionary from load_config()

        Returns:
            CohostClient using the configured base URL, timeout and attachment API
        """
        settings = get_cohost_settings(config)
        return cls(
            base_url=settings["base_url"],
            timeout=settings["timeout"],
            attachment_api=settings["attachment_api"],
        )

    def url_for(self, path: str) -> str:
        """Return the absolute URL of an API path (e.g. "login/salt")."""
        return f"{self.base_url}{path}"

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        """Send a request and return the response if its status is 2xx.

        Raises:
            RequestError: On connection failure or non-2xx response
            CohostIOError: If reading a streamed request body fails
        """
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self.http.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise RequestError(f"{method} {url} failed: {e}", status_code=status_code) from e
        except requests.RequestException as e:
            raise RequestError(f"{method} {url} failed: {e}") from e
        except OSError as e:
            raise CohostIOError(f"i/o error while sending {method} {url}: {e}") from e

    def request(
        self,
        method: str,
        path: str,
        schema: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> Any:
        """Send a request to an API path.

        Args:
            method: HTTP method ("GET", "POST", "PUT", "DELETE")
            path: Path relative to base_url
            schema: If given, the response body is decoded as JSON, validated
                    against this schema and returned
            **kwargs: Passed on to requests (json, params, ...)

        Returns:
            Decoded and validated response body, or None when no schema is given

        Raises:
            RequestError: On connection failure or non-2xx response
            ResponseValidationError: If the body is not JSON or fails the schema
        """
        logger.info(f"{method} {path}")
        response = self._send(method, self.url_for(path), **kwargs)
        if schema is None:
            return None

        try:
            payload = response.json()
        except ValueError as e:
            raise ResponseValidationError(
                f"{method} {path} returned a non-JSON body", status_code=response.status_code
            ) from e
        validate_payload(payload, schema)
        logger.debug(f"{method} {path} -> {payload}")
        return payload

    def upload_form(
        self,
        url: str,
        fields: Dict[str, str],
        filename: str,
        stream: BinaryIO,
        content_type: str,
    ) -> None:
        """Upload a file with a multipart/form-data POST to an absolute URL.

        The required form fields are sent before the "file" part, as storage
        backends using presigned POST policies expect. The body is streamed
        from the file with a fixed Content-Length; the file is never read
        into memory as a whole.

        Args:
            url: Upload target returned by the attachment start call
            fields: Form fields required by the upload target
            filename: File name for the "file" part
            stream: Binary stream with the file content
            content_type: MIME type for the "file" part
        """
        encoder = MultipartEncoder(
            fields=list(fields.items()) + [("file", (filename, stream, content_type))]
        )
        logger.info(f"POST {url} (multipart upload of {filename}, {encoder.len} bytes)")
        self._send(
            "POST",
            url,
            data=encoder,
            headers={"Content-Type": encoder.content_type},
        )

    def login(self, email: str, password: str) -> "Session":
        """Log into cohost with an email and password.

        Fetches the account's salt, derives the client hash and posts it. On
        success the login cookie is stored in this client's requests.Session.
        Securely storing the password is left to the caller.

        Args:
            email: Account email address
            password: Account password (never logged)

        Returns:
            Session wrapping this client

        Raises:
            Base64DecodeError: If the server's salt is malformed
            RequestError: If either request fails
        """
        from .session import Session

        salt = self.request(
            "GET", "login/salt", params={"email": email}, schema=SALT_RESPONSE_SCHEMA
        )["salt"]
        client_hash = derive_client_hash(password, salt)

        data = self.request(
            "POST",
            "login",
            json={"email": email, "clientHash": client_hash},
            schema=LOGIN_RESPONSE_SCHEMA,
        )
        user_id = data["userId"]
        logger.info(f"Logged in to {self.base_url} as user {user_id}")
        return Session(self, user_id)
