"""
Unit tests for numeric helpers.
"""

import pytest

from ringtrader.utils.math import format_decimal, format_profit, round_step
from ringtrader.utils.time import LatencyTimer, format_duration_us, format_timestamp_ms


class TestRoundStep:
    """Floor-to-step rounding."""

    @pytest.mark.parametrize(
        ("value", "step", "expected"),
        [
            (1.234567, "0.001", 1.234),
            (0.016649, "0.0001", 0.0166),
            (0.00099999, "0.00001000", 0.00099),
            (15.0, "1.00000000", 15.0),
            (0.3, "0.1", 0.3),
            (0.7, 0.1, 0.7),
        ],
    )
    def test_floors_to_step(self, value: float, step: str | float, expected: float) -> None:
        assert round_step(value, step) == pytest.approx(expected, abs=1e-12)

    @pytest.mark.parametrize("value", [0.001, 0.123, 1.5, 0.00001, 42.0])
    def test_idempotent_on_aligned_input(self, value: float) -> None:
        once = round_step(value, "0.00001")

        assert round_step(once, "0.00001") == once

    @pytest.mark.parametrize("value", [0.0199999, 3.14159265, 0.00012345])
    def test_never_exceeds_input(self, value: float) -> None:
        assert round_step(value, "0.0001") <= value

    def test_never_rounds_up(self) -> None:
        """0.29999 would round to 0.3 to nearest; floor keeps 0.2."""
        assert round_step(0.29999, "0.1") == pytest.approx(0.2)

    def test_invalid_step_passes_through(self) -> None:
        assert round_step(1.23456, "0") == 1.23456
        assert round_step(1.23456, "not-a-number") == 1.23456


def test_format_decimal_strips_zeros() -> None:
    assert format_decimal(0.00100000) == "0.001"
    assert format_decimal(50000.0) == "50000"
    assert format_decimal(0.123456789) == "0.12345679"


def test_format_profit() -> None:
    assert format_profit(0.109) == "+10.9000%"
    assert format_profit(-0.001) == "-0.1000%"


class TestTimeHelpers:
    """Timestamp formatting and latency measurement."""

    def test_format_timestamp_ms(self) -> None:
        assert format_timestamp_ms(1704067200123) == "2024-01-01 00:00:00.123"

    @pytest.mark.parametrize(
        ("duration_us", "expected"),
        [(500, "500μs"), (1500, "1.50ms"), (1_500_000, "1.50s")],
    )
    def test_format_duration_us(self, duration_us: int, expected: str) -> None:
        assert format_duration_us(duration_us) == expected

    def test_latency_timer(self) -> None:
        with LatencyTimer() as timer:
            sum(range(1000))

        assert timer.latency_us >= 0
        assert timer.end_us >= timer.start_us
