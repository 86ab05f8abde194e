"""
Integration tests for jump execution.

Runs the executor against an in-memory store and the mocked exchange
client, in dry-run and live mode.
"""

import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from ringtrader.core.errors import JumpCommitError, PartialJumpError
from ringtrader.core.types import JumpStatus, Opportunity, PriceSnapshot
from ringtrader.exchange.client import BinanceAPIError, NetworkError
from ringtrader.exchange.rules import ExchangeRuleCache
from ringtrader.execution.executor import ExecutorConfig, JumpExecutor
from ringtrader.storage.store import TradingStore
from ringtrader.strategy.calculator import ProfitCalculator
from ringtrader.telemetry.metrics import JUMPS_PARTIAL, SIZING_ABORTS, MetricsCollector
from tests.mocks.exchange import MockBinanceClient


class TestExecutionIntegration:
    """Integration tests for the jump executor."""

    @pytest.fixture
    def benchmarked_store(self, store: TradingStore, flat_prices: dict[str, str]) -> TradingStore:
        """Store benchmarked at BTC/ETH = 15, holding BTC."""
        store.initialize_ratios(PriceSnapshot(flat_prices))
        store.ensure_current_holding("BTC")
        return store

    @pytest.fixture
    def metrics(self) -> MetricsCollector:
        return MetricsCollector()

    def _executor(
        self,
        client: MockBinanceClient,
        rules: ExchangeRuleCache,
        store: TradingStore,
        metrics: MetricsCollector,
        dry_run: bool = True,
    ) -> JumpExecutor:
        return JumpExecutor(
            client=client,  # type: ignore[arg-type]
            rules=rules,
            store=store,
            config=ExecutorConfig(bridge="USDT", fee_rate=0.001, dry_run=dry_run),
            metrics=metrics,
        )

    def _btc_to_eth(
        self,
        store: TradingStore,
        calculator: ProfitCalculator,
        snapshot: PriceSnapshot,
    ) -> Opportunity:
        pair = next(p for p in store.pairs_from("BTC") if p.to_asset == "ETH")
        return calculator.evaluate(pair, snapshot)

    @pytest.mark.asyncio
    async def test_dry_run_jump(
        self,
        mock_client: MockBinanceClient,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
    ) -> None:
        """A profitable BTC -> ETH jump moves the holding and re-benchmarks ETH."""
        executor = self._executor(mock_client, rules, benchmarked_store, metrics)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)
        assert opportunity.is_profitable

        result = await executor.execute(opportunity, 0.001, snapshot)

        assert result.status == JumpStatus.SUCCESS
        assert result.sell is not None and result.buy is not None
        assert result.sell.quantity == pytest.approx(0.001)
        assert result.buy.quantity == pytest.approx(0.0166)
        assert mock_client.orders == []

        assert benchmarked_store.get_current_holding() == "ETH"

        trades = benchmarked_store.list_trades()
        assert len(trades) == 2
        assert all(t.simulated for t in trades)
        profits = {t.side: t.profit for t in trades}
        assert profits["SELL"] is None
        assert profits["BUY"] == pytest.approx(opportunity.profit)

        ratios = {p.key: p.ratio for p in benchmarked_store.all_pairs()}
        assert ratios["ETH/BTC"] == pytest.approx(0.06)
        assert ratios["ETH/BNB"] == pytest.approx(6.0)
        assert ratios["BTC/ETH"] == pytest.approx(15.0)

        assert metrics.jump_stats.jumps_successful == 1

    @pytest.mark.asyncio
    async def test_live_jump(
        self,
        mock_client: MockBinanceClient,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
    ) -> None:
        """Live mode sends a sell then a buy and records the fills."""
        executor = self._executor(mock_client, rules, benchmarked_store, metrics, dry_run=False)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)

        result = await executor.execute(opportunity, 0.001, snapshot)

        assert result.is_success
        assert [(o["symbol"], o["side"]) for o in mock_client.orders] == [
            ("BTCUSDT", "SELL"),
            ("ETHUSDT", "BUY"),
        ]
        assert mock_client.orders[1]["quantity"] == pytest.approx(0.0166)

        trades = benchmarked_store.list_trades()
        assert not any(t.simulated for t in trades)
        assert {t.order_id for t in trades} == {"1", "2"}
        assert benchmarked_store.get_current_holding() == "ETH"

    @pytest.mark.asyncio
    async def test_undersized_sell_aborts_before_any_order(
        self,
        mock_client: MockBinanceClient,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
    ) -> None:
        executor = self._executor(mock_client, rules, benchmarked_store, metrics, dry_run=False)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)

        result = await executor.execute(opportunity, 0.000001, snapshot)

        assert result.status == JumpStatus.SIZING_ABORTED
        assert mock_client.orders == []
        assert benchmarked_store.count_trades() == 0
        assert benchmarked_store.get_current_holding() == "BTC"
        assert metrics.get_counter(SIZING_ABORTS) == 1

    @pytest.mark.asyncio
    async def test_failed_sell_changes_nothing(
        self,
        mock_client: MockBinanceClient,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
    ) -> None:
        mock_client.fail_orders_for("BTCUSDT", NetworkError("connection reset", path="/api/v3/order"))
        executor = self._executor(mock_client, rules, benchmarked_store, metrics, dry_run=False)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)

        result = await executor.execute(opportunity, 0.001, snapshot)

        assert result.status == JumpStatus.FAILED
        assert "BTCUSDT" in result.error_message
        assert benchmarked_store.count_trades() == 0
        assert benchmarked_store.get_current_holding() == "BTC"

    @pytest.mark.asyncio
    async def test_failed_buy_is_partial(
        self,
        mock_client: MockBinanceClient,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
    ) -> None:
        """Sell filled, buy rejected: surfaced as a partial jump, holding untouched."""
        mock_client.fail_orders_for(
            "ETHUSDT",
            BinanceAPIError("Filter failure: LOT_SIZE", path="/api/v3/order", status=400, code=-1013),
        )
        executor = self._executor(mock_client, rules, benchmarked_store, metrics, dry_run=False)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)

        with pytest.raises(PartialJumpError) as exc_info:
            await executor.execute(opportunity, 0.001, snapshot)

        error = exc_info.value
        assert error.from_asset == "BTC"
        assert error.to_asset == "ETH"
        assert error.bridge == "USDT"
        assert error.bridge_amount == pytest.approx(29.97)

        trades = benchmarked_store.list_trades()
        assert [t.side for t in trades] == ["SELL"]
        assert benchmarked_store.get_current_holding() == "BTC"
        ratios = {p.key: p.ratio for p in benchmarked_store.all_pairs()}
        assert ratios["ETH/BTC"] == pytest.approx(2000 / 30000)
        assert metrics.get_counter(JUMPS_PARTIAL) == 1

    @pytest.mark.asyncio
    async def test_unfilled_buy_is_partial(
        self,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
        profitable_prices: dict[str, str],
        mock_exchange_info: dict[str, object],
    ) -> None:
        client = MockBinanceClient(prices=profitable_prices, exchange_info=mock_exchange_info)
        executor = self._executor(client, rules, benchmarked_store, metrics, dry_run=False)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)

        # Sell fills, then the book dries up
        original = client.place_market_order

        async def place(symbol, side, quantity):  # type: ignore[no-untyped-def]
            response = await original(symbol, side, quantity)
            if side.value == "BUY":
                return response.model_copy(update={"executed_qty": "0", "status": "EXPIRED"})
            return response

        client.place_market_order = place  # type: ignore[method-assign]

        with pytest.raises(PartialJumpError):
            await executor.execute(opportunity, 0.001, snapshot)

        assert benchmarked_store.get_current_holding() == "BTC"
        assert benchmarked_store.count_trades() == 1

    @pytest.mark.asyncio
    async def test_multi_asset_quantities(
        self,
        mock_client: MockBinanceClient,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
    ) -> None:
        """Tracked balances move from the sold asset to the bought one, net of fees."""
        benchmarked_store.set_asset_quantity("BTC", 0.002)
        executor = self._executor(mock_client, rules, benchmarked_store, metrics)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)

        result = await executor.execute(opportunity, 0.002, snapshot)

        assert result.buy is not None
        assert benchmarked_store.get_asset_quantity("BTC") == pytest.approx(0.0)
        assert benchmarked_store.get_asset_quantity("ETH") == pytest.approx(result.buy.quantity * 0.999)

    @pytest.mark.asyncio
    async def test_unexpected_buy_error_is_partial(
        self,
        mock_client: MockBinanceClient,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
    ) -> None:
        """Any failure once the sell filled is reported as a partial jump."""
        mock_client.fail_orders_for("ETHUSDT", ValueError("could not convert string to float: ''"))
        executor = self._executor(mock_client, rules, benchmarked_store, metrics, dry_run=False)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)

        with pytest.raises(PartialJumpError) as exc_info:
            await executor.execute(opportunity, 0.001, snapshot)

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert [t.side for t in benchmarked_store.list_trades()] == ["SELL"]
        assert benchmarked_store.get_current_holding() == "BTC"
        assert metrics.get_counter(JUMPS_PARTIAL) == 1

    @pytest.mark.asyncio
    async def test_commit_failure_after_both_legs(
        self,
        mock_client: MockBinanceClient,
        rules: ExchangeRuleCache,
        benchmarked_store: TradingStore,
        calculator: ProfitCalculator,
        metrics: MetricsCollector,
        snapshot: PriceSnapshot,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A holding update that fails after both fills is raised and logged at CRITICAL."""

        def broken_apply_jump(*args: object) -> None:
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(benchmarked_store, "apply_jump", broken_apply_jump)
        executor = self._executor(mock_client, rules, benchmarked_store, metrics, dry_run=False)
        opportunity = self._btc_to_eth(benchmarked_store, calculator, snapshot)

        with caplog.at_level(logging.CRITICAL, logger="ringtrader.execution.executor"):
            with pytest.raises(JumpCommitError):
                await executor.execute(opportunity, 0.001, snapshot)

        assert len(mock_client.orders) == 2
        assert benchmarked_store.count_trades() == 2
        assert any(r.levelno == logging.CRITICAL for r in caplog.records)
        assert metrics.jump_stats.jumps_successful == 0
