"""Error taxonomy for the reaction dispatcher."""

from __future__ import annotations

import re

# Start failures matching this pattern are expected to clear up on retry.
TRANSIENT_INIT_PATTERN = re.compile(r"Session closed|Protocol error", re.IGNORECASE)


class ReactorError(Exception):
    """Base class for all dispatcher errors."""


class InitError(ReactorError):
    """The transport client failed to start."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class TransientInitError(InitError):
    """Session or protocol failure during start; retried up to the bound."""


class PermanentInitError(InitError):
    """Any other start failure; surfaced immediately."""


class NoReactionChannelAvailable(ReactorError):
    """No reaction strategy could be applied to the target."""


class TeardownError(ReactorError):
    """Destroying a client instance failed."""


def classify_init_failure(exc: BaseException) -> InitError:
    """Map a raw start exception onto the init error taxonomy."""

    if isinstance(exc, InitError):
        return exc
    message = str(exc) or type(exc).__name__
    if TRANSIENT_INIT_PATTERN.search(message):
        return TransientInitError(message, cause=exc)
    return PermanentInitError(message, cause=exc)
