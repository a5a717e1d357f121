"""Request pipeline: one YNAB HTTP call in, one classified Outcome out."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, TypeVar
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from ynab_skill.config import Settings
from ynab_skill.errors import Failure, Issue, Outcome, Success, YnabError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def build_endpoint(path: str, params: Iterable[tuple[str, Any]] = ()) -> str:
    """Append the query parameters that are set, keeping their order."""
    query = [(k, str(v)) for k, v in params if v is not None]
    if not query:
        return path
    return f"{path}?{urlencode(query)}"


def _issue_path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def validate_shape(payload: Any, shape: type[M], context: str = "") -> Outcome[M]:
    """Check a parsed payload against a response model."""
    try:
        return Success(shape.model_validate(payload))
    except ValidationError as e:
        issues = [Issue(_issue_path(err["loc"]), err["msg"]) for err in e.errors()]
        logger.error(
            "YNAB API response validation error (%s): %s; raw response: %s",
            context or shape.__name__,
            [str(i) for i in issues],
            json.dumps(payload, default=str)[:2000],
        )
        return Failure(YnabError.validation(issues, original_error=payload))


class YnabApi:
    """Thin async proxy to the YNAB REST API.

    Never raises for upstream conditions: every call returns Success or
    Failure. No retries; a failed write is reported, not replayed.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.settings.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> YnabApi:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        shape: type[M] | None = None,
    ) -> Outcome[Any]:
        url = f"{self.settings.base_url}{endpoint}"
        headers = {"Authorization": f"Bearer {self.settings.token}"}
        content = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            content = json.dumps(body)

        logger.debug("%s %s", method, endpoint)
        try:
            resp = await self._get_client().request(method, url, headers=headers, content=content)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, OSError, UnicodeError) as e:
            # UnicodeError: non-ASCII token in the Authorization header
            logger.error("Network error calling YNAB %s %s: %s", method, endpoint, e)
            return Failure(YnabError.network(str(e), original_error=e))

        if not resp.is_success:
            return Failure(self._error_from_response(resp))

        outcome = self._parse_success(resp)
        if shape is None or not outcome.is_ok or outcome.value is None:
            return outcome
        return validate_shape(outcome.value, shape, context=endpoint)

    @staticmethod
    def _error_from_response(resp: httpx.Response) -> YnabError:
        detail = f"Request failed with status {resp.status_code}"
        parsed: Any = {}
        try:
            parsed = resp.json()
        except ValueError as e:
            logger.warning("Could not parse YNAB error response as JSON: %s", e)
        else:
            err = parsed.get("error") if isinstance(parsed, dict) else None
            upstream = err.get("detail") if isinstance(err, dict) else None
            if isinstance(upstream, str) and upstream:
                detail = upstream
        return YnabError.api(resp.status_code, detail, original_error=parsed)

    @staticmethod
    def _parse_success(resp: httpx.Response) -> Outcome[Any]:
        text = resp.text
        if not text:
            return Success(None)
        try:
            return Success(json.loads(text))
        except ValueError as e:
            logger.error("Failed to parse YNAB success response: %s; response text: %s", e, text[:2000])
            return Failure(YnabError.parse(original_error=text))
