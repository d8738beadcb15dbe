import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .config import AnalyticsConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolContext:
    """Per-request inputs shared by every assistant tool call.

    ``timezone_name`` is the user's preference; None falls back to
    ``config.default_timezone`` and the tools disclose the assumption.
    """

    user_id: str
    now: datetime
    timezone_name: str | None = None
    account_created_at: datetime | None = None
    config: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    workout_limit: int = 1000
    weight_entry_limit: int = 365


# Tool signature: def tool(store, context, **arguments) -> dict
ToolFn = Callable[..., dict[str, Any]]

_tools: dict[str, ToolFn] = {}

# Function-calling metadata: name -> {description, parameters}
_tool_metadata: dict[str, dict[str, Any]] = {}


def assistant_tool(
    name: str,
    *,
    description: str,
    parameters: dict[str, Any] | None = None,
) -> Callable[[ToolFn], ToolFn]:
    """Register a read-only assistant tool.

    ``parameters`` is a JSON-schema object describing the keyword arguments
    the assistant may pass; it is published verbatim in tool_definitions().

    Usage:
        @assistant_tool("get_workout_stats", description="...", parameters={...})
        def get_workout_stats(store, context, *, period="month"):
            ...
    """

    def decorator(fn: ToolFn) -> ToolFn:
        if not name:
            raise ValueError(f"assistant tool name must not be empty for {fn.__name__}")
        if name in _tools:
            raise ValueError(f"Duplicate assistant tool name={name!r}")
        _tools[name] = fn
        _tool_metadata[name] = {
            "description": description,
            "parameters": parameters or {"type": "object", "properties": {}},
        }
        logger.debug("Registered assistant tool %s", name)
        return fn

    return decorator


def get_tool(name: str) -> ToolFn | None:
    return _tools.get(name)


def registered_tools() -> list[str]:
    return list(_tools.keys())


def get_tool_parameters(name: str) -> dict[str, Any]:
    return _tool_metadata.get(name, {}).get("parameters", {})


def tool_definitions() -> list[dict[str, Any]]:
    """Function-calling definitions for every registered tool."""
    return [
        {"name": name, **meta}
        for name, meta in _tool_metadata.items()
    ]
