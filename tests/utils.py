"""Test utilities shared across test modules."""

import json
from typing import Any

import httpx


class RecordingTransport:
    """httpx mock transport handler that records requests.

    Queued responses are replayed in order. When the queue is empty,
    200 with an empty JSON object is returned.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response] = []

    def queue(self, status: int = 200, body: Any = None) -> None:
        """Queue a JSON response."""
        payload = body if body is not None else {}
        self._responses.append(httpx.Response(status, json=payload))

    def queue_text(self, status: int, text: str) -> None:
        """Queue a non-JSON response."""
        self._responses.append(httpx.Response(status, text=text))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._responses:
            return self._responses.pop(0)
        return httpx.Response(200, json={})

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        """Decoded JSON body of the last request."""
        return json.loads(self.last_request.content)
