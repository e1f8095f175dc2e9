"""
Ordered tool fallback chains.

A chain is a plain list of :class:`Step` objects.  Each step names the
native tools it needs; the runner skips steps whose tools are missing,
moves on when a tool fails, and only raises once nothing is left.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

from screenshot_mcp.errors import ExternalToolFailure, ToolUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Step(Generic[T]):
    name: str
    requires: tuple[str, ...]
    action: Callable[[], T]
    # Whole-screen fallbacks that cannot honour the requested target
    approximate: bool = False


def available_steps(steps: Sequence[Step[T]], exists: Callable[[str], bool]) -> list[Step[T]]:
    """Steps whose required tools are all installed, in chain order."""
    return [s for s in steps if all(exists(tool) for tool in s.requires)]


def select_step(steps: Sequence[Step[T]], exists: Callable[[str], bool]) -> Step[T] | None:
    """The step that would be tried first, or None."""
    usable = available_steps(steps, exists)
    return usable[0] if usable else None


def run_chain(
    steps: Sequence[Step[T]],
    exists: Callable[[str], bool],
    *,
    purpose: str,
    hint: str,
) -> tuple[str, T]:
    """Run the first working step and return ``(step name, result)``.

    Raises:
        ExternalToolFailure: the last attempted tool failed.
        ToolUnavailable: no step had its tools installed.
    """
    last_error: ExternalToolFailure | None = None
    for step in available_steps(steps, exists):
        if step.approximate:
            logger.info("%s: falling back to %s (captures the whole screen)", purpose, step.name)
        try:
            return step.name, step.action()
        except ExternalToolFailure as e:
            logger.warning("%s: %s failed, trying next tool: %s", purpose, step.name, e)
            last_error = e

    if last_error is not None:
        raise last_error
    families = [s.name for s in steps]
    raise ToolUnavailable(f"No {purpose} tool available. {hint}", families)
