"""Classified errors, request outcomes, tool results and the error formatter.

Every failure detected while talking to YNAB is captured once as a
``YnabError`` and carried inside a ``Failure``. Nothing in this package raises
past a tool adapter: adapters turn a ``Failure`` into a ``ToolResult`` through
``format_error``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

UPSTREAM = "YNAB"
ERROR_PREFIX = f"{UPSTREAM} API Error: "
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"


class ErrorKind(str, Enum):
    NETWORK = "network"
    API = "api"
    VALIDATION = "validation"
    PARSE = "parse"
    UNKNOWN = "unknown"


_DEFAULT_MESSAGES = {
    ErrorKind.NETWORK: "Network request failed.",
    ErrorKind.API: "Request failed.",
    ErrorKind.VALIDATION: "API response validation failed.",
    ErrorKind.PARSE: "Failed to parse successful API response.",
    ErrorKind.UNKNOWN: UNKNOWN_ERROR_MESSAGE,
}


@dataclass(frozen=True)
class Issue:
    """One schema mismatch: where (dotted path) and why."""

    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.reason}"


@dataclass(frozen=True)
class YnabError:
    kind: ErrorKind
    message: str
    status: int | None = None
    detail: str | None = None
    issues: tuple[Issue, ...] = ()
    original_error: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.message:
            object.__setattr__(self, "message", _DEFAULT_MESSAGES[self.kind])

    @classmethod
    def network(cls, message: str, original_error: Any = None) -> YnabError:
        return cls(ErrorKind.NETWORK, message, original_error=original_error)

    @classmethod
    def api(cls, status: int, detail: str, original_error: Any = None) -> YnabError:
        return cls(
            ErrorKind.API,
            f"{ERROR_PREFIX}{detail}",
            status=status,
            detail=detail,
            original_error=original_error,
        )

    @classmethod
    def validation(cls, issues: list[Issue], original_error: Any = None) -> YnabError:
        return cls(
            ErrorKind.VALIDATION,
            _DEFAULT_MESSAGES[ErrorKind.VALIDATION],
            issues=tuple(issues),
            original_error=original_error,
        )

    @classmethod
    def parse(cls, message: str = "", original_error: Any = None) -> YnabError:
        return cls(ErrorKind.PARSE, message, original_error=original_error)

    @classmethod
    def unknown(cls, message: str = "", original_error: Any = None) -> YnabError:
        return cls(ErrorKind.UNKNOWN, message, original_error=original_error)


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    error: YnabError

    @property
    def is_ok(self) -> bool:
        return False


Outcome = Union[Success[T], Failure]


@dataclass(frozen=True)
class TextBlock:
    text: str
    kind: str = "text"

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "text": self.text}


@dataclass
class ToolResult:
    """What every tool invocation returns, success or not."""

    content: list[TextBlock]
    is_error: bool = False
    server_knowledge: int | None = None

    @classmethod
    def text(cls, text: str, server_knowledge: int | None = None) -> ToolResult:
        return cls([TextBlock(text)], server_knowledge=server_knowledge)

    @classmethod
    def error(cls, text: str) -> ToolResult:
        return cls([TextBlock(text)], is_error=True)

    @property
    def first_text(self) -> str:
        return self.content[0].text if self.content else ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"content": [b.to_dict() for b in self.content]}
        if self.is_error:
            out["isError"] = True
        if self.server_knowledge is not None:
            out["serverKnowledge"] = self.server_knowledge
        return out


def _display_message(error: Any) -> str:
    if isinstance(error, dict):
        message = error.get("message")
    else:
        message = getattr(error, "message", None)
        if message is None and isinstance(error, BaseException):
            message = str(error)
    if message is None:
        return UNKNOWN_ERROR_MESSAGE
    message = str(message)
    return message or UNKNOWN_ERROR_MESSAGE


def format_error(error: Any, context_name: str) -> ToolResult:
    """Render any error-shaped value as an ``is_error`` ToolResult.

    Accepts a YnabError, an exception, a dict or anything else; values without
    a usable ``message`` degrade to the generic unknown-error text.
    """
    message = _display_message(error)
    kind = getattr(error, "kind", None)
    kind_name = kind.value if isinstance(kind, ErrorKind) else type(error).__name__

    issues = getattr(error, "issues", None)
    if issues:
        logger.error(
            "Error in %s (%s): %s; issues=%s; payload=%r",
            context_name, kind_name, message,
            [str(i) for i in issues], getattr(error, "original_error", None),
        )
    elif kind == ErrorKind.PARSE:
        logger.error(
            "Error in %s (%s): %s; payload=%r",
            context_name, kind_name, message, getattr(error, "original_error", None),
        )
    else:
        logger.error("Error in %s (%s): %s", context_name, kind_name, message)

    if message.startswith(ERROR_PREFIX):
        text = message
    else:
        text = f"{ERROR_PREFIX}{message}"
    return ToolResult.error(text)
