"""Result type for explicit error handling.

Pipeline stages return a Result instead of raising, so the dispatcher can
stop at the first failing stage and hand a typed error to the CLI.

Usage:
    async def test(...) -> Result[str, TestFailure]:
        res = await engine.exec(spec, ("go", "test", "./..."))
        if isinstance(res, Err):
            return Err(TestFailure(error=res.error))
        return Ok(res.value.stdout)

    match await test(...):
        case Ok(stdout):
            console.print(stdout)
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result carrying a value."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result carrying an error."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
