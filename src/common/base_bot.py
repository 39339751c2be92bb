# src/common/base_bot.py

import logging
import traceback
from typing import Any, Awaitable, Callable, Optional

import discord
from discord.ext import commands

Job = Callable[["BaseDiscordBot"], Awaitable[Any]]


class BaseDiscordBot(commands.Bot):
    """
    Bot that connects, runs a single job once the gateway is ready, and
    disconnects. The session is closed on every exit path.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, dev_mode: bool = False,
                 intents: Optional[discord.Intents] = None, command_prefix="!", **kwargs):
        if intents is None:
            intents = self.default_intents()
        super().__init__(command_prefix=command_prefix, intents=intents, **kwargs)
        self.logger = logger or logging.getLogger('DiscordBot')
        self.dev_mode = dev_mode

        self._job: Optional[Job] = None
        self._job_started = False
        self.job_result: Any = None
        self.job_error: Optional[BaseException] = None

    @staticmethod
    def default_intents() -> discord.Intents:
        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.message_content = True
        return intents

    async def run_once(self, token: str, job: Job) -> Any:
        """
        Log in, run `job(self)` from on_ready, then close the connection.

        Errors raised by the job are captured (discord.py would otherwise
        swallow them in on_error) and re-raised once the session is closed.
        """
        self._job = job
        try:
            await self.start(token)
        finally:
            if not self.is_closed():
                await self.close()

        if self.job_error is not None:
            raise self.job_error
        if not self._job_started:
            raise RuntimeError("Discord session ended before the bot became ready")
        return self.job_result

    async def on_ready(self):
        """Called when the bot is ready. Runs the job only on the first ready event."""
        if self._job_started or self._job is None:
            return
        self._job_started = True

        self.logger.info(f"✅ Logged in as {self.user.name} (ID: {self.user.id})")
        self.logger.info(f"Dev mode: {self.dev_mode}")
        self.logger.info(f"Connected to {len(self.guilds)} guilds")
        try:
            self.job_result = await self._job(self)
        except Exception as e:
            self.job_error = e
            self.logger.debug(traceback.format_exc())
        finally:
            await self.close()
            self.logger.info("🔌 Disconnected from Discord")

    async def close(self):
        """Clean up resources on shutdown."""
        try:
            await super().close()
        except Exception as e:
            self.logger.error(f"Error during bot shutdown: {e}")
            self.logger.debug(traceback.format_exc())
            raise
