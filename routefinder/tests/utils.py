from __future__ import annotations

import asyncio
from typing import Any, Iterable, List, Optional, Union


class MockAsyncResponse:
    def __init__(
        self,
        json_data: Any = None,
        *,
        status_code: int = 200,
        text: Optional[str] = None,
    ) -> None:
        self._json = json_data
        self.status_code = status_code
        # A body that is not JSON
        self._text = text

    def json(self) -> Any:
        if self._text is not None:
            raise ValueError(f"Expecting value: {self._text[:20]!r}")
        return self._json


class MockAsyncClient:
    """Stands in for httpx.AsyncClient; replays queued responses or raises queued errors."""

    def __init__(self, responses: Iterable[Union[MockAsyncResponse, Exception]]) -> None:
        self._responses: List[Union[MockAsyncResponse, Exception]] = list(responses)
        self.requests: List[dict] = []

    async def __aenter__(self) -> "MockAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False

    async def get(self, url: str, **kwargs) -> MockAsyncResponse:
        if not self._responses:
            raise AssertionError("No more mock responses available")
        self.requests.append({"url": url, **kwargs})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def run(coro):
    """Helper to run async functions in synchronous tests."""
    return asyncio.run(coro)
