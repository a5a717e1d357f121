from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from ynab_skill.api import YnabApi
from ynab_skill.config import Settings

BASE_URL = "https://api.ynab.test/v1"


class Upstream:
    """Stand-in for the YNAB API: records requests, answers with a canned reply."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._respond: Callable[[httpx.Request], httpx.Response] = lambda req: httpx.Response(204)

    def reply(self, status: int = 200, json_body: Any = None, text: str | None = None) -> None:
        if text is not None:
            self._respond = lambda req: httpx.Response(status, text=text)
        elif json_body is not None:
            self._respond = lambda req: httpx.Response(status, json=json_body)
        else:
            self._respond = lambda req: httpx.Response(status)

    def fail(self, exc: Exception) -> None:
        def raise_(req: httpx.Request) -> httpx.Response:
            raise exc
        self._respond = raise_

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def settings():
    return Settings(token="test-token", base_url=BASE_URL)


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture
async def api(settings, client):
    async with YnabApi(settings, client=client) as ynab:
        yield ynab
