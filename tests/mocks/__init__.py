"""Mock implementations for testing."""

from tests.mocks.exchange import MockBinanceClient


__all__ = [
    "MockBinanceClient",
]
