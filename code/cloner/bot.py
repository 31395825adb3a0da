# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


import asyncio
import contextlib
import logging
import os
import signal
from pathlib import Path
from typing import Optional

import aiohttp
import discord
from discord.errors import Forbidden
from dotenv import load_dotenv

from common.config import Config, CURRENT_VERSION
from cloner.assets import AssetFetcher
from cloner.orchestrator import ServerCloner
from cloner.pacing import PacingPolicy

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")

LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LEVEL = getattr(logging, LEVEL_NAME, logging.INFO)

formatter = logging.Formatter(
    "%(asctime)s | %(levelname)-5s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

root = logging.getLogger()
root.setLevel(LEVEL)

ch = logging.StreamHandler()
ch.setFormatter(formatter)
ch.setLevel(LEVEL)
root.addHandler(ch)

for lib in (
    "discord",
    "discord.client",
    "discord.gateway",
    "discord.state",
    "discord.http",
):
    logging.getLogger(lib).setLevel(logging.WARNING)
logging.getLogger("discord.client").setLevel(logging.ERROR)

logger = logging.getLogger("cloner")
logger.setLevel(LEVEL)


class ClonerBot:
    def __init__(self):
        self.config = Config(logger=logger)
        self.bot = discord.Bot(intents=discord.Intents.all())
        self.bot.cloner = self
        self.session: Optional[aiohttp.ClientSession] = None
        self.active: Optional[ServerCloner] = None
        self.active_task: Optional[asyncio.Task] = None
        self._shutting_down = False
        self._shutdown_task: Optional[asyncio.Task] = None
        self.bot.event(self.on_ready)

        orig_on_connect = self.bot.on_connect

        async def _command_sync():
            try:
                await orig_on_connect()
            except Forbidden as e:
                logger.warning(
                    "[⚠️] Can't sync slash commands, make sure the bot is in the server: %s",
                    e,
                )

        self.bot.on_connect = _command_sync
        self.bot.load_extension("cloner.commands")

    async def on_ready(self):
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        logger.info(
            "[🤖] Logged in as %s; in %d guild(s)",
            self.bot.user,
            len(self.bot.guilds),
        )

    def new_cloner(self, log_sink=None) -> ServerCloner:
        return ServerCloner(
            self.bot,
            fetcher=AssetFetcher(self.session),
            pacing=PacingPolicy.from_config(self.config),
            log_sink=log_sink,
            shrink_emojis=self.config.SHRINK_EMOJIS,
        )

    def is_busy(self) -> bool:
        return self.active_task is not None and not self.active_task.done()

    def _request_shutdown(self) -> asyncio.Task:
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.create_task(self._shutdown())
        return self._shutdown_task

    async def _shutdown(self):
        """
        Stop the active clone run (if any), then close the HTTP session and
        the gateway connection.
        """
        if self._shutting_down:
            return
        self._shutting_down = True
        logger.info("Shutting down...")

        if self.active is not None:
            self.active.request_stop()
        if self.active_task is not None and not self.active_task.done():
            self.active_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await self.active_task

        try:
            if self.session and not self.session.closed:
                await self.session.close()
        except Exception:
            logger.debug("[shutdown] aiohttp session close failed", exc_info=True)

        try:
            if not self.bot.is_closed():
                await self.bot.close()
        except Exception:
            logger.debug("[shutdown] bot close failed", exc_info=True)

        logger.info("Shutdown complete.")

    def run(self):
        logger.info("[✨] Starting Clonecord %s", CURRENT_VERSION)
        if not self.config.BOT_TOKEN:
            logger.error("[⛔] BOT_TOKEN is not set; nothing to do.")
            return

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(
                    sig, lambda s=sig: self._request_shutdown()
                )
            except (NotImplementedError, RuntimeError):
                break

        try:
            loop.run_until_complete(self.bot.start(self.config.BOT_TOKEN))
        finally:
            pending = asyncio.all_tasks(loop=loop)
            for task in pending:
                task.cancel()
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.close()


def main():
    ClonerBot().run()


if __name__ == "__main__":
    main()
