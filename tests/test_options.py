"""Tests for the option registry and value validation."""

import pytest

from uciharness.uci import (
    OptionError,
    OptionKind,
    OptionKindMismatch,
    OptionNotAllowed,
    OptionNotFound,
    OptionOutOfRange,
    OptionRegistry,
    OptionSpec,
    OptionValue,
    format_setoption,
)


@pytest.fixture
def registry() -> OptionRegistry:
    reg = OptionRegistry()
    reg.register(OptionSpec("Threads", OptionKind.SPIN, default=1, min=1, max=512))
    reg.register(OptionSpec("Contempt", OptionKind.SPIN, default=0, min=-100, max=100))
    reg.register(OptionSpec("Ponder", OptionKind.CHECK, default=False))
    reg.register(OptionSpec("Clear Hash", OptionKind.BUTTON))
    reg.register(
        OptionSpec("Style", OptionKind.COMBO, default="Normal", choices=("Solid", "Normal", "Risky"))
    )
    reg.register(OptionSpec("SyzygyPath", OptionKind.STRING, default=""))
    return reg


class TestRegistry:
    """Tests for registering and looking up options."""

    def test_lookup_is_case_insensitive(self, registry: OptionRegistry) -> None:
        """Test that names match regardless of case."""
        assert registry.get("threads").name == "Threads"
        assert "CLEAR HASH" in registry
        assert "Hash" not in registry

    def test_unknown_option(self, registry: OptionRegistry) -> None:
        """Test that unknown names raise OptionNotFound."""
        with pytest.raises(OptionNotFound) as exc_info:
            registry.get("Hash")
        assert exc_info.value.name == "Hash"

    def test_redeclaration_replaces(self, registry: OptionRegistry) -> None:
        """Test that a second declaration wins."""
        registry.register(OptionSpec("threads", OptionKind.SPIN, default=2, min=1, max=8))
        assert len(registry) == 6
        assert registry.get("Threads").max == 8

    def test_names_keep_declaration_order(self, registry: OptionRegistry) -> None:
        """Test that names are listed as the engine declared them."""
        assert registry.names() == [
            "Threads",
            "Contempt",
            "Ponder",
            "Clear Hash",
            "Style",
            "SyzygyPath",
        ]

    def test_copy_is_independent(self, registry: OptionRegistry) -> None:
        """Test that copies do not share registrations."""
        clone = registry.copy()
        clone.register(OptionSpec("Hash", OptionKind.SPIN, default=16, min=1, max=2048))
        assert "Hash" in clone
        assert "Hash" not in registry


class TestSpinValues:
    """Tests for spin validation."""

    def test_string_value_in_range(self, registry: OptionRegistry) -> None:
        """Test that numeric strings are accepted."""
        command = registry.validate_and_format("Threads", "4")
        assert command == "setoption name Threads value 4"

    def test_bounds_are_inclusive(self, registry: OptionRegistry) -> None:
        """Test values exactly at min and max."""
        assert registry.validate("Threads", 1).value == 1
        assert registry.validate("Threads", 512).value == 512
        assert registry.validate("Contempt", "-100").value == -100

    @pytest.mark.parametrize("value", [0, 513, "9999", -1])
    def test_out_of_range(self, registry: OptionRegistry, value: int | str) -> None:
        """Test values outside [min, max]."""
        with pytest.raises(OptionOutOfRange, match=r"\[1, 512\]"):
            registry.validate("Threads", value)

    @pytest.mark.parametrize("value", ["four", "4.5", True, None, ""])
    def test_not_an_integer(self, registry: OptionRegistry, value: object) -> None:
        """Test values that are not integers."""
        with pytest.raises(OptionKindMismatch):
            registry.validate("Threads", value)


class TestOtherKinds:
    """Tests for check, button, combo and string validation."""

    @pytest.mark.parametrize(
        ("value", "expected"), [(True, True), (False, False), ("true", True), ("FALSE", False)]
    )
    def test_check(self, registry: OptionRegistry, value: bool | str, expected: bool) -> None:
        """Test booleans and their string spellings."""
        assert registry.validate("Ponder", value) == OptionValue(OptionKind.CHECK, expected)

    @pytest.mark.parametrize("value", ["yes", 1, None])
    def test_check_mismatch(self, registry: OptionRegistry, value: object) -> None:
        """Test that only booleans are valid check values."""
        with pytest.raises(OptionKindMismatch):
            registry.validate("Ponder", value)

    def test_check_command(self, registry: OptionRegistry) -> None:
        """Test the rendering of a check value."""
        assert registry.validate_and_format("ponder", True) == "setoption name Ponder value true"

    def test_button_has_no_value(self, registry: OptionRegistry) -> None:
        """Test that buttons ignore the value and send no value token."""
        assert registry.validate_and_format("Clear Hash", None) == "setoption name Clear Hash"
        assert registry.validate("Clear Hash", "x").value is None

    def test_combo_returns_declared_spelling(self, registry: OptionRegistry) -> None:
        """Test that combo values match case-insensitively."""
        assert registry.validate_and_format("Style", "risky") == "setoption name Style value Risky"

    def test_combo_not_allowed(self, registry: OptionRegistry) -> None:
        """Test that values outside the choices are rejected."""
        with pytest.raises(OptionNotAllowed, match="Solid, Normal, Risky"):
            registry.validate("Style", "Wild")

    def test_combo_needs_string(self, registry: OptionRegistry) -> None:
        """Test that non-string combo values are a kind mismatch."""
        with pytest.raises(OptionKindMismatch):
            registry.validate("Style", 3)

    def test_string_value(self, registry: OptionRegistry) -> None:
        """Test that string values are sent verbatim."""
        command = registry.validate_and_format("SyzygyPath", "/tb/wdl:/tb/dtz")
        assert command == "setoption name SyzygyPath value /tb/wdl:/tb/dtz"

    def test_empty_string_value(self, registry: OptionRegistry) -> None:
        """Test that an empty string is sent as <empty>."""
        assert registry.validate_and_format("SyzygyPath", "") == (
            "setoption name SyzygyPath value <empty>"
        )

    def test_string_needs_string(self, registry: OptionRegistry) -> None:
        """Test that string options reject other types."""
        with pytest.raises(OptionKindMismatch):
            registry.validate("SyzygyPath", 5)

    @pytest.mark.parametrize("value", ["/tb\nquit", "/tb\r\nquit", "\n"])
    def test_string_must_be_single_line(self, registry: OptionRegistry, value: str) -> None:
        """Test that line breaks are rejected in string values."""
        with pytest.raises(OptionKindMismatch, match="single line"):
            registry.validate_and_format("SyzygyPath", value)

    def test_errors_are_value_errors(self, registry: OptionRegistry) -> None:
        """Test that option errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            registry.validate("Style", "Wild")
        assert issubclass(OptionNotFound, OptionError)


class TestFormatting:
    """Tests for format_setoption()."""

    def test_spin(self) -> None:
        """Test a spin command."""
        assert format_setoption("Hash", OptionValue(OptionKind.SPIN, 256)) == (
            "setoption name Hash value 256"
        )

    def test_button(self) -> None:
        """Test a button command."""
        assert format_setoption("Clear Hash", OptionValue(OptionKind.BUTTON, None)) == (
            "setoption name Clear Hash"
        )
