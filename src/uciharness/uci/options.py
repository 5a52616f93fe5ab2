"""Registry of engine-declared options and per-kind value validation."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from uciharness.uci.errors import (
    OptionKindMismatch,
    OptionNotAllowed,
    OptionNotFound,
    OptionOutOfRange,
)
from uciharness.uci.messages import OptionKind, OptionSpec

_INTEGER = re.compile(r"[+-]?\d+")
_BOOLEANS = {"true": True, "false": False}
_EMPTY_STRING = "<empty>"

OptionInput = bool | int | str | None


@dataclass(frozen=True)
class OptionValue:
    """A value that has been validated against an option's declared kind.

    ``value`` is a ``bool`` for check options, an ``int`` for spin
    options, a ``str`` for combo and string options and ``None`` for
    buttons.
    """

    kind: OptionKind
    value: bool | int | str | None

    def to_token(self) -> str | None:
        """Render the text sent after ``value`` (None for buttons)."""
        if self.kind is OptionKind.BUTTON:
            return None
        if self.kind is OptionKind.CHECK:
            return "true" if self.value else "false"
        if self.kind is OptionKind.STRING and self.value == "":
            return _EMPTY_STRING
        return str(self.value)


def format_setoption(name: str, value: OptionValue) -> str:
    """Build the ``setoption`` command for an already validated value."""
    token = value.to_token()
    if token is None:
        return f"setoption name {name}"
    return f"setoption name {name} value {token}"


class OptionRegistry:
    """Options declared by an engine, keyed by name.

    UCI option names are case-insensitive, so lookups ignore case while
    the engine's own spelling is kept for the commands sent back to it.
    A re-declared option replaces the previous declaration.
    """

    def __init__(self) -> None:
        self._specs: dict[str, OptionSpec] = {}

    def register(self, spec: OptionSpec) -> None:
        self._specs[spec.name.casefold()] = spec

    def get(self, name: str) -> OptionSpec:
        """Return the spec declared under ``name``.

        Raises:
            OptionNotFound: If the engine never declared the option.
        """
        try:
            return self._specs[name.casefold()]
        except KeyError:
            raise OptionNotFound(name) from None

    def names(self) -> list[str]:
        return [spec.name for spec in self._specs.values()]

    def copy(self) -> OptionRegistry:
        clone = OptionRegistry()
        clone._specs = dict(self._specs)
        return clone

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._specs

    def __iter__(self) -> Iterator[OptionSpec]:
        return iter(list(self._specs.values()))

    def __len__(self) -> int:
        return len(self._specs)

    def validate(self, name: str, value: OptionInput) -> OptionValue:
        """Check ``value`` against the declared kind and constraints.

        Values may be given as Python objects or as the string tokens a
        command line provides (``"4"``, ``"true"``).

        Raises:
            OptionNotFound: Unknown option name.
            OptionKindMismatch: Value cannot represent the option's kind.
            OptionOutOfRange: Spin value outside [min, max].
            OptionNotAllowed: Combo value not among the declared choices.
        """
        spec = self.get(name)
        if spec.kind is OptionKind.BUTTON:
            return OptionValue(spec.kind, None)
        if spec.kind is OptionKind.CHECK:
            return OptionValue(spec.kind, _check_value(spec, value))
        if spec.kind is OptionKind.SPIN:
            return OptionValue(spec.kind, _spin_value(spec, value))
        if spec.kind is OptionKind.COMBO:
            return OptionValue(spec.kind, _combo_value(spec, value))
        if not isinstance(value, str):
            raise OptionKindMismatch(
                spec.name, f"Option '{spec.name}' expects a string, got {value!r}"
            )
        if "\n" in value or "\r" in value:
            raise OptionKindMismatch(
                spec.name, f"Option '{spec.name}' must be a single line, got {value!r}"
            )
        return OptionValue(spec.kind, value)

    def validate_and_format(self, name: str, value: OptionInput) -> str:
        """Validate ``value`` and return the exact ``setoption`` command text."""
        spec = self.get(name)
        return format_setoption(spec.name, self.validate(name, value))


def _check_value(spec: OptionSpec, value: OptionInput) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in _BOOLEANS:
        return _BOOLEANS[value.lower()]
    raise OptionKindMismatch(
        spec.name, f"Option '{spec.name}' expects true or false, got {value!r}"
    )


def _spin_value(spec: OptionSpec, value: OptionInput) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str) and _INTEGER.fullmatch(value.strip()):
        number = int(value)
    else:
        raise OptionKindMismatch(
            spec.name, f"Option '{spec.name}' expects an integer, got {value!r}"
        )

    if (spec.min is not None and number < spec.min) or (
        spec.max is not None and number > spec.max
    ):
        raise OptionOutOfRange(
            spec.name,
            f"Option '{spec.name}' must be within [{spec.min}, {spec.max}], got {number}",
        )
    return number


def _combo_value(spec: OptionSpec, value: OptionInput) -> str:
    if not isinstance(value, str):
        raise OptionKindMismatch(
            spec.name, f"Option '{spec.name}' expects one of its choices, got {value!r}"
        )
    for choice in spec.choices:
        if choice.casefold() == value.casefold():
            return choice
    raise OptionNotAllowed(
        spec.name,
        f"Option '{spec.name}' does not allow {value!r} "
        f"(choices: {', '.join(spec.choices)})",
    )
