"""Request-scoped context helpers."""

from __future__ import annotations

from contextvars import ContextVar, Token

REQUEST_ID_HEADER = "X-Request-ID"
_NO_REQUEST_ID = "-"

_request_id_ctx_var: ContextVar[str] = ContextVar("task_studio_request_id", default=_NO_REQUEST_ID)


def get_request_id() -> str:
    """Return the request identifier bound to the current context, or ``"-"``."""

    return _request_id_ctx_var.get()


def bind_request_id(request_id: str) -> Token[str]:
    return _request_id_ctx_var.set(request_id)


def reset_request_id(token: Token[str]) -> None:
    _request_id_ctx_var.reset(token)


__all__ = [
    "REQUEST_ID_HEADER",
    "bind_request_id",
    "get_request_id",
    "reset_request_id",
]
