"""
Entry point for the conversion bot.

Usage:
    python -m usdbot
    usd-bot  # if installed via pip
"""

import asyncio
import sys


def _install_uvloop() -> bool:
    """Use uvloop for the event loop when it is installed."""
    try:
        import uvloop
    except ImportError:
        return False

    uvloop.install()
    return True


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from usdbot import __version__
    from usdbot.config.settings import get_settings
    from usdbot.core.engine import ConversionBot

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     USD STABLECOIN CONVERSION BOT v{__version__:<21}      ║
║                                                               ║
║     Binance WebSocket API                                     ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nMake sure you have a .env file with:")
        print("  BINANCE_API_KEY=your_api_key")
        print("  BINANCE_API_SECRET=your_api_secret")
        return 1

    uvloop_enabled = settings.use_uvloop and _install_uvloop()

    print("Configuration:")
    print(f"  Mode:           {'DRY RUN' if settings.dry_run else 'LIVE TRADING'}")
    print(f"  Exchange:       {'Testnet' if settings.use_testnet else 'Production'}")
    print(f"  Endpoint:       {settings.endpoint}")
    print(f"  Symbols:        {', '.join(settings.symbols)}")
    print(f"  Volume:         {settings.volume_per_transaction} per order")
    print(f"  Ceiling:        {settings.volume_maximum}")
    print(f"  Threshold:      {settings.profit_threshold}")
    print(f"  uvloop:         {'Enabled' if uvloop_enabled else 'Disabled'}")
    print()

    if not settings.dry_run:
        print("⚠️  WARNING: Live trading mode enabled!")
        print("    Real orders will be placed on the exchange.")
        print()

    async def run_bot() -> int:
        bot = ConversionBot(settings)

        try:
            await bot.run()
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

    try:
        return asyncio.run(run_bot())
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 0


if __name__ == "__main__":
    sys.exit(main())
