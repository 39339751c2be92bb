from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from src.common.base_bot import BaseDiscordBot


class _OfflineBot(BaseDiscordBot):
    """Skips the gateway: start() goes straight to on_ready, close() is recorded."""

    user = SimpleNamespace(name="digest-bot", id=42)
    guilds = []

    def __init__(self, ready: bool = True, login_error: Exception = None) -> None:
        super().__init__()
        self.ready = ready
        self.login_error = login_error
        self.events: list[str] = []

    async def start(self, token, *, reconnect=True):
        self.events.append(f"start:{token}")
        if self.login_error is not None:
            raise self.login_error
        if self.ready:
            await self.on_ready()

    async def close(self):
        self.events.append("close")

    def is_closed(self) -> bool:
        return "close" in self.events


def _run(job, **kwargs):
    async def scenario():
        bot = _OfflineBot(**kwargs)
        try:
            return bot, await bot.run_once("token", job), None
        except Exception as e:
            return bot, None, e

    return asyncio.run(scenario())


def test_successful_job_result_is_returned_and_session_closed() -> None:
    async def job(bot):
        bot.events.append("job")
        return True

    bot, result, error = _run(job)

    assert error is None
    assert result is True
    assert bot.events == ["start:token", "job", "close"]


def test_nothing_to_report_still_closes_session() -> None:
    async def job(bot):
        return False

    bot, result, error = _run(job)

    assert error is None
    assert result is False
    assert bot.events.count("close") == 1


def test_job_error_is_reraised_after_close() -> None:
    async def job(bot):
        bot.events.append("job")
        raise RuntimeError("image generation failed")

    bot, result, error = _run(job)

    assert isinstance(error, RuntimeError)
    assert str(error) == "image generation failed"
    assert bot.events == ["start:token", "job", "close"]


def test_job_runs_only_on_first_ready_event() -> None:
    calls = []

    async def job(bot):
        calls.append(1)
        await bot.on_ready()
        return True

    _run(job)

    assert calls == [1]


def test_login_failure_closes_session_and_propagates() -> None:
    async def job(bot):
        return True

    bot, result, error = _run(job, login_error=ConnectionError("gateway unreachable"))

    assert isinstance(error, ConnectionError)
    assert bot.events == ["start:token", "close"]


def test_session_ending_before_ready_is_an_error() -> None:
    async def job(bot):
        return True

    bot, result, error = _run(job, ready=False)

    assert isinstance(error, RuntimeError)
    assert bot.events == ["start:token", "close"]
