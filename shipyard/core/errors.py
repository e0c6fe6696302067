"""Error codes for CLI exit status.

Every pipeline error maps to one of these codes (see ``output.errors``).
The numeric values are part of the CLI contract and should remain stable:
- 0: Success
- 1: User error (missing or unknown task, invalid config)
- 2: Environment error (engine unreachable, missing credential)
- 3: Build error (tests or compilation failed)
- 4: Network error (image publish failed)
- 5: I/O error (host export failed)
- 6: Release error (release tool failed)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the shipyard CLI."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    RELEASE_ERROR = 6
