from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class RequestContext:
    request_id: str | None = None
    tenant_id: str | None = None
    user_id: str | None = None


_EMPTY = RequestContext()
_REQUEST_CTX: ContextVar[RequestContext] = ContextVar("request_context", default=_EMPTY)


def set_request_context(
    *, request_id: str | None = None, tenant_id: int | str | None = None, user_id: int | str | None = None
) -> None:
    """Merge the given values into the current context; ``None`` leaves a field untouched."""
    changes = {}
    if request_id is not None:
        changes["request_id"] = request_id
    if tenant_id is not None:
        changes["tenant_id"] = str(tenant_id)
    if user_id is not None:
        changes["user_id"] = str(user_id)
    if changes:
        _REQUEST_CTX.set(replace(_REQUEST_CTX.get(), **changes))


def get_request_context() -> RequestContext:
    return _REQUEST_CTX.get()


def clear_request_context() -> None:
    _REQUEST_CTX.set(_EMPTY)
