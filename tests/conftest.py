"""
Pytest configuration and shared fixtures for all tests.

This module provides:
- FakeCohost: a stand-in for the cohost HTTP API, installed as the
  request side effect of a CohostClient's requests.Session
- Fixtures for a fake server, a client wired to it, and small media files
"""
import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image
from requests_toolbelt import MultipartEncoder

from cohost.client import CohostClient

BASE_URL = "https://cohost.org/api/v1/"
UPLOAD_URL = "https://uploads.example.com/bucket"
ATTACHMENT_ID = "92bfaa11-8e42-4f60-acf4-6fd714b5678b"
CDN_URL = "https://staging.cohostcdn.org/attachment/92bfaa11/cat.png"

# Body of post create/edit requests, used to check what Post.to_api sends
POST_REQUEST_SCHEMA = json.loads((Path(__file__).parent / "schemas" / "post_request.json").read_text())


def make_response(json_data: Any = None, status_code: int = 200) -> MagicMock:
    """Create a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=response
        )
    return response


class FakeCohost:
    """Routes (method, url) pairs to canned responses and records every call.

    Paths without a scheme are relative to BASE_URL. Multipart upload bodies
    are unpacked into their form fields and file part when the request is
    made, so tests can check what was sent after the stream has been closed.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.lock = threading.Lock()

    @staticmethod
    def _url(path: str) -> str:
        return path if path.startswith("http") else BASE_URL + path

    def add(self, method: str, path: str, json_data: Any = None, status_code: int = 200) -> None:
        """Queue a response. The last queued response repeats."""
        self.routes.setdefault((method, self._url(path)), []).append((json_data, status_code))

    def add_error(self, method: str, path: str, error: Exception) -> None:
        self.routes.setdefault((method, self._url(path)), []).append(error)

    def __call__(self, method: str, url: str, **kwargs) -> MagicMock:
        recorded = dict(kwargs)
        body = kwargs.get("data")
        if isinstance(body, MultipartEncoder):
            fields = list(body.fields)
            recorded["field_names"] = [name for name, _ in fields]
            recorded["data"] = {name: value for name, value in fields if name != "file"}
            name, stream, content_type = dict(fields)["file"]
            recorded["file_content"] = (name, stream.read(), content_type)
        with self.lock:
            self.calls.append((method, url, recorded))
            queue = self.routes.get((method, url))
            if not queue:
                return make_response({"error": "not found"}, 404)
            entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(entry, Exception):
            raise entry
        json_data, status_code = entry
        return make_response(json_data, status_code)

    def calls_to(self, method: str, path: str) -> List[Dict[str, Any]]:
        url = self._url(path)
        return [kwargs for m, u, kwargs in self.calls if m == method and u == url]

    def add_attachment_routes(
        self,
        project: str,
        post_id: int,
        attachment_id: str = ATTACHMENT_ID,
        url: str = CDN_URL,
        upload_url: Optional[str] = None,
    ) -> None:
        """Route the REST start, upload and finish steps of one attachment."""
        upload_url = upload_url or f"{UPLOAD_URL}/{attachment_id}"
        self.add("POST", f"project/{project}/posts/{post_id}/attach/start", {
            "attachmentId": attachment_id,
            "url": upload_url,
            "requiredFields": {"key": f"attachment/{attachment_id}", "policy": "c2lnbmVk"},
        })
        self.add("POST", upload_url, None, 204)
        self.add("POST", f"project/{project}/posts/{post_id}/attach/finish/{attachment_id}", {
            "attachmentId": attachment_id,
            "url": url,
        })


@pytest.fixture
def fake():
    """A FakeCohost with no routes."""
    return FakeCohost()


@pytest.fixture
def client(fake):
    """A CohostClient whose HTTP session is answered by the fake server."""
    client = CohostClient()
    client.http = MagicMock()
    client.http.request.side_effect = fake
    return client


@pytest.fixture
def png_file(tmp_path):
    """A 3x2 PNG file on disk."""
    path = tmp_path / "uh-oh.png"
    Image.new("RGB", (3, 2), color=(255, 0, 0)).save(path)
    return path
