from __future__ import annotations

"""Process driver for the bot.

Purpose: Build one controller, start its timers, connect, and keep the loop
alive until an interrupt. On SIGINT/SIGTERM the controller says goodbye and the
process exits after a fixed grace period.

"""

import asyncio
import logging
import signal
from typing import Optional

from .config import DEFAULT_USERNAME, Settings, configure_logging, load_settings
from .controller import BotController
from .session import BridgeSessionClient, SessionClient


logger = logging.getLogger("bedrockbot.runner")


SHUTDOWN_GRACE_S = 2.0


async def start_bot(
    username: str = DEFAULT_USERNAME,
    *,
    settings: Optional[Settings] = None,
    client: Optional[SessionClient] = None,
) -> BotController:
    settings = settings or load_settings()
    client = client or BridgeSessionClient(settings.bridge_url)
    logger.info("starting bot %s", username)
    bot = BotController(client, asyncio.get_running_loop(), settings=settings)
    bot.start()
    await bot.connect(username)
    return bot


async def run(settings: Settings) -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    bot = await start_bot(settings.username, settings=settings)

    def _signal_handler() -> None:
        if bot.shutting_down:
            return
        logger.info("shutting down bot")
        bot.shutdown()
        loop.call_later(SHUTDOWN_GRACE_S, stop.set)

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Signals not supported on some platforms (e.g., Windows)
            pass

    await stop.wait()


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        loop.run_until_complete(run(settings))
    except KeyboardInterrupt:
        logger.info("interrupted")
    finally:
        pending = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


if __name__ == "__main__":
    main()
