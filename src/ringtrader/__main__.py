"""
Entry point for the ring trading bot.

Usage:
    python -m ringtrader
    ringtrader  # if installed via pip
"""

import asyncio
import logging
import sys


# Try to use uvloop for better performance
try:
    import uvloop

    uvloop.install()
    UVLOOP_ENABLED = True
except ImportError:
    UVLOOP_ENABLED = False


logger = logging.getLogger("ringtrader")


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for configuration or startup failure).
    """
    from pydantic import ValidationError

    from ringtrader import __version__
    from ringtrader.config.settings import get_settings
    from ringtrader.core.engine import TradingEngine
    from ringtrader.core.errors import StartupError
    from ringtrader.telemetry.logger import setup_logging

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     RING TRADER v{__version__:<39}      ║
║                                                               ║
║     Bridge-Currency Jump Bot for Binance                      ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        print("\nMake sure you have a .env file with:")
        print("  BINANCE_API_KEY=your_api_key")
        print("  BINANCE_API_SECRET=your_api_secret")
        return 1

    print("Configuration:")
    print(f"  Mode:           {'DRY RUN' if settings.dry_run else 'LIVE TRADING'}")
    print(f"  Exchange:       {'Testnet' if settings.use_testnet else 'Production'}")
    print(f"  Strategy:       {settings.strategy}")
    print(f"  Bridge:         {settings.bridge}")
    print(f"  Coins:          {', '.join(settings.trade_coins)}")
    print(f"  Fee rate:       {settings.fee_rate * 100:.3f}%")
    print(f"  Scout margin:   {settings.scout_margin:.3f}%")
    print(f"  Tick interval:  {settings.tick_interval}s")
    print(f"  Database:       {settings.database_url}")
    print(f"  uvloop:         {'Enabled' if UVLOOP_ENABLED else 'Disabled'}")
    print()

    if not settings.dry_run:
        print("⚠️  WARNING: Live trading mode enabled!")
        print("    Real orders will be placed on the exchange.")
        print()

    async_logger = setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        secrets=(
            settings.binance_api_key.get_secret_value(),
            settings.binance_api_secret.get_secret_value(),
        ),
    )

    async def run_engine() -> int:
        engine = TradingEngine(settings)

        try:
            await engine.setup()
            engine.install_signal_handlers()
            await engine.run()
            return 0

        except StartupError as e:
            logger.critical("Startup failed: %s", e)
            return 1

        except Exception:
            logger.exception("Fatal error")
            return 1

        finally:
            await engine.shutdown()

    try:
        return asyncio.run(run_engine())
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 0
    finally:
        async_logger.stop()


if __name__ == "__main__":
    sys.exit(main())
