"""Task selection and CI context resolution.

The CI environment is read exactly once, here. Everything downstream works
on the frozen ``ExecutionContext``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum

from ..core.result import Err, Ok, Result
from ..engine.model import Secret
from .errors import MissingArgument, ResolveError, UnknownTask

__all__ = [
    "EventKind",
    "TaskName",
    "ExecutionContext",
    "TOKEN_VARIABLE",
    "resolve",
    "context_from_env",
]

TOKEN_VARIABLE = "GITHUB_TOKEN"
_EVENT_VARIABLES = ("GITHUB_EVENT", "GITHUB_EVENT_NAME")
_REF_VARIABLES = ("GITHUB_REF", "GITHUB_REF_NAME")
_RELEASE_TAG_MARKER = "/tags/v"


class EventKind(StrEnum):
    push = "push"
    pull_request = "pull_request"
    unknown = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> EventKind:
        value = (raw or "").strip().lower()
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.unknown


class TaskName(StrEnum):
    pull_request = "pull-request"
    release = "release"

    @classmethod
    def names(cls) -> tuple[str, ...]:
        return tuple(t.value for t in cls)


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    event: EventKind = EventKind.unknown
    ref: str = ""
    credential_token: Secret | None = None
    local_mode: bool = False

    @property
    def is_release_tag(self) -> bool:
        """True for a push of a ``v*`` tag."""
        return self.event == EventKind.push and _RELEASE_TAG_MARKER in self.ref


def _first(env: Mapping[str, str], names: Sequence[str]) -> str | None:
    for name in names:
        value = env.get(name, "").strip()
        if value:
            return value
    return None


def context_from_env(env: Mapping[str, str], *, local_mode: bool = False) -> ExecutionContext:
    """Build an ExecutionContext from environment variables.

    A missing or blank token is tolerated; only the release pipeline needs it.
    """
    token = env.get(TOKEN_VARIABLE, "").strip()
    return ExecutionContext(
        event=EventKind.parse(_first(env, _EVENT_VARIABLES)),
        ref=_first(env, _REF_VARIABLES) or "",
        credential_token=Secret(TOKEN_VARIABLE, token) if token else None,
        local_mode=local_mode,
    )


def resolve(
    argv: Sequence[str],
    env: Mapping[str, str],
    *,
    local_mode: bool = False,
) -> Result[tuple[TaskName, ExecutionContext], ResolveError]:
    """Validate the requested task and capture the CI context.

    Args:
        argv: Positional arguments; the first one is the task name.
        env: Process environment.
        local_mode: Run the release task in snapshot mode.

    Returns:
        Ok((task, context)), or Err(MissingArgument | UnknownTask).
    """
    available = TaskName.names()
    name = argv[0].strip() if argv else ""
    if not name:
        return Err(MissingArgument(available=available))
    if name not in available:
        return Err(UnknownTask(name=name, available=available))
    return Ok((TaskName(name), context_from_env(env, local_mode=local_mode)))
