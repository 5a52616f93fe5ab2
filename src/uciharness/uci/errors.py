"""Error types raised by the UCI session layer.

Every error derives from :class:`UCIError` so callers (the CLI in
particular) can catch the whole family at once and map individual
kinds to exit codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uciharness.uci.session import SessionState


class UCIError(Exception):
    """Base class for all UCI communication failures."""

    pass


class ProtocolError(UCIError):
    """Raised when a handshake did not complete as expected."""

    pass


class EngineTerminated(UCIError):
    """Raised when the engine process exited or its output stream closed."""

    pass


class InvalidStateError(ProtocolError):
    """Raised when an operation is not allowed in the current session state.

    Also a :class:`ProtocolError`: the caller broke the command order.
    """

    def __init__(self, state: SessionState, operation: str) -> None:
        self.state = state
        self.operation = operation
        super().__init__(f"Cannot {operation}() while session is {state.name}")


class OptionError(UCIError, ValueError):
    """Base class for option validation errors.

    These are local to the option registry: nothing is ever sent to the
    engine when one of them is raised.
    """

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(message)


class OptionNotFound(OptionError):
    """Raised when the engine never declared an option with this name."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"Unknown engine option: '{name}'")


class OptionKindMismatch(OptionError):
    """Raised when a value cannot represent the option's declared kind."""

    pass


class OptionOutOfRange(OptionError):
    """Raised when a spin value falls outside the declared [min, max] bounds."""

    pass


class OptionNotAllowed(OptionError):
    """Raised when a combo value is not one of the declared choices."""

    pass


class ParseDegraded(Exception):
    """Signals that an engine line could not be classified.

    Only used inside the parser, which turns it into an ``Unknown``
    message. It never reaches the caller.
    """

    pass
