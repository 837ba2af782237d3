"""
Tests for the HTTP Client Module.

Test Coverage:
    - Base URL normalization and configuration
    - User agent and cookie-carrying requests.Session
    - Error mapping (connection errors, HTTP errors, invalid bodies, local I/O)
"""
import io
import unittest
from unittest.mock import patch, MagicMock

import requests
from requests_toolbelt import MultipartEncoder

from cohost import __version__
from cohost.client import CohostClient
from cohost.errors import CohostIOError, RequestError, ResponseValidationError
from cohost.schema import POST_RESPONSE_SCHEMA

from conftest import make_response


class TestCohostClient(unittest.TestCase):
    """Test suite for CohostClient."""

    def setUp(self):
        self.client = CohostClient()
        self.client.http = MagicMock()

    def test_defaults(self):
        client = CohostClient()
        self.assertEqual(client.base_url, "https://cohost.org/api/v1/")
        self.assertEqual(client.timeout, 30)
        self.assertEqual(client.attachment_api, "rest")
        self.assertIsInstance(client.http, requests.Session)
        self.assertEqual(client.http.headers["User-Agent"], f"cohost-bot/{__version__}")

    def test_base_url_gets_trailing_slash(self):
        client = CohostClient(base_url="http://localhost:8080/api/v1")
        self.assertEqual(client.base_url, "http://localhost:8080/api/v1/")
        self.assertEqual(client.url_for("login"), "http://localhost:8080/api/v1/login")

    def test_invalid_attachment_api(self):
        with self.assertRaises(ValueError):
            CohostClient(attachment_api="graphql")

    def test_from_config(self):
        config = {
            "cohost": {
                "base_url": "https://staging.example/api/v1",
                "timeout": 5,
                "attachment_api": "trpc",
            }
        }
        client = CohostClient.from_config(config)

        self.assertEqual(client.base_url, "https://staging.example/api/v1/")
        self.assertEqual(client.timeout, 5)
        self.assertEqual(client.attachment_api, "trpc")

    def test_from_config_defaults(self):
        client = CohostClient.from_config({})
        self.assertEqual(client.base_url, "https://cohost.org/api/v1/")
        self.assertEqual(client.attachment_api, "rest")

    def test_request_returns_validated_json(self):
        self.client.http.request.return_value = make_response({"postId": 7})

        result = self.client.request("POST", "project/bot/posts", json={}, schema=POST_RESPONSE_SCHEMA)

        self.assertEqual(result, {"postId": 7})
        self.client.http.request.assert_called_once_with(
            "POST", "https://cohost.org/api/v1/project/bot/posts", json={}, timeout=30
        )

    def test_request_without_schema_returns_none(self):
        self.client.http.request.return_value = make_response(None, 204)
        self.assertIsNone(self.client.request("DELETE", "project/bot/posts/1"))

    def test_http_error(self):
        self.client.http.request.return_value = make_response({"error": "nope"}, 403)

        with self.assertRaises(RequestError) as ctx:
            self.client.request("GET", "login/salt")

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIn("GET https://cohost.org/api/v1/login/salt failed", str(ctx.exception))

    def test_connection_error(self):
        self.client.http.request.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(RequestError) as ctx:
            self.client.request("GET", "login/salt")

        self.assertIsNone(ctx.exception.status_code)
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)

    def test_timeout(self):
        self.client.http.request.side_effect = requests.Timeout("read timed out")
        with self.assertRaises(RequestError):
            self.client.request("GET", "login/salt")

    def test_local_io_error(self):
        self.client.http.request.side_effect = OSError("disk went away")
        with self.assertRaises(CohostIOError):
            self.client.upload_form("https://uploads.example.com", {}, "a.png", io.BytesIO(b""), "image/png")

    def test_non_json_body(self):
        self.client.http.request.return_value = make_response(ValueError("Expecting value"))

        with self.assertRaises(ResponseValidationError):
            self.client.request("POST", "project/bot/posts", schema=POST_RESPONSE_SCHEMA)

    def test_schema_mismatch(self):
        self.client.http.request.return_value = make_response({"postId": "seven"})

        with self.assertRaises(ResponseValidationError) as ctx:
            self.client.request("POST", "project/bot/posts", schema=POST_RESPONSE_SCHEMA)

        self.assertIn("postId", str(ctx.exception))
        self.assertIsInstance(ctx.exception, RequestError)

    def test_upload_form(self):
        self.client.http.request.return_value = make_response(None, 204)
        stream = io.BytesIO(b"png")

        self.client.upload_form(
            "https://uploads.example.com/b", {"key": "k", "policy": "p"}, "a.png", stream, "image/png"
        )

        args, kwargs = self.client.http.request.call_args
        self.assertEqual(args, ("POST", "https://uploads.example.com/b"))
        self.assertEqual(kwargs["timeout"], 30)
        encoder = kwargs["data"]
        self.assertIsInstance(encoder, MultipartEncoder)
        self.assertEqual(kwargs["headers"], {"Content-Type": encoder.content_type})
        self.assertTrue(encoder.content_type.startswith("multipart/form-data; boundary="))
        self.assertEqual([name for name, _ in encoder.fields], ["key", "policy", "file"])

        body = encoder.to_string()
        self.assertEqual(len(body), encoder.len)
        self.assertLess(body.index(b'name="policy"'), body.index(b'name="file"; filename="a.png"'))
        self.assertIn(b"Content-Type: image/png\r\n\r\npng\r\n", body)

    def test_upload_form_streams_file_body(self):
        client = CohostClient()
        content = b"\x00" * (256 * 1024)

        with patch.object(client.http, "send", return_value=make_response(None, 204)) as mock_send:
            client.upload_form("https://uploads.example.com/b", {"key": "k"}, "big.bin",
                               io.BytesIO(content), "application/octet-stream")

        prepared = mock_send.call_args[0][0]
        self.assertNotIsInstance(prepared.body, bytes)
        self.assertIsInstance(prepared.body, MultipartEncoder)
        self.assertEqual(int(prepared.headers["Content-Length"]), prepared.body.len)
        self.assertGreater(prepared.body.len, len(content))
        self.assertTrue(prepared.headers["Content-Type"].startswith("multipart/form-data"))

    @patch("cohost.client.requests.Session")
    def test_cookies_live_on_one_session(self, mock_session_cls):
        client = CohostClient()
        client.http.request.return_value = make_response({"postId": 1})

        client.request("POST", "a", schema=POST_RESPONSE_SCHEMA)
        client.request("POST", "b", schema=POST_RESPONSE_SCHEMA)

        mock_session_cls.assert_called_once()
        self.assertEqual(mock_session_cls.return_value.request.call_count, 2)


if __name__ == "__main__":
    unittest.main()
