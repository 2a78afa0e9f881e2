"""Structured logging helpers (PHI-safe)."""

from typing import Any
from uuid import UUID


def build_log_context(
    *,
    user_id: UUID | str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """Return a PHI-safe log context dict.

    Only identifiers go in here; never emails, codes or profile data.
    """
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    for key, value in fields.items():
        if value is not None:
            context[key] = value
    return context
