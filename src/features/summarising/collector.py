import asyncio
import logging
from typing import AsyncIterator, Iterable, List, Optional

import aiohttp
import discord

from .models import ChannelDigest, CommunityDigest, RawMessage, TimeWindow

# Discord returns at most 100 messages per history request
MAX_PAGE_SIZE = 100


class MessageCollector:
    """Pages backwards through a channel's history and keeps the in-window human messages."""

    def __init__(self, logger: Optional[logging.Logger] = None, page_size: int = MAX_PAGE_SIZE,
                 page_delay: float = 0.5, fetch_timeout: float = 30.0):
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        self.logger = logger or logging.getLogger('DiscordBot')
        self.page_size = page_size
        self.page_delay = page_delay
        self.fetch_timeout = fetch_timeout

    async def _fetch_page(self, channel, before: Optional[discord.abc.Snowflake]) -> List[discord.Message]:
        return [message async for message in channel.history(limit=self.page_size, before=before)]

    async def iter_pages(self, channel) -> AsyncIterator[List[discord.Message]]:
        """
        Yields pages of messages, newest first, until history runs out.

        Each new generator starts again from the most recent message.
        """
        cursor: Optional[discord.abc.Snowflake] = None
        while True:
            if cursor is not None and self.page_delay > 0:
                await asyncio.sleep(self.page_delay)

            page = await asyncio.wait_for(self._fetch_page(channel, cursor), timeout=self.fetch_timeout)
            if not page:
                return

            yield page
            cursor = discord.Object(id=page[-1].id)

    def _should_include(self, message: discord.Message, window: TimeWindow, excluded_author_id: Optional[int]) -> bool:
        if not window.contains(message.created_at):
            return False
        if excluded_author_id is not None and message.author.id == excluded_author_id:
            return False
        if message.author.bot:
            return False
        return bool(message.content and message.content.strip())

    async def collect(self, channel, window: TimeWindow, excluded_author_id: Optional[int]) -> List[RawMessage]:
        """
        Collects the in-window messages of one channel, newest first.

        Pagination stops at the first message older than the window start.
        A failed fetch is logged and whatever was gathered so far is returned.
        """
        messages: List[RawMessage] = []
        pages = self.iter_pages(channel)
        try:
            async for page in pages:
                for message in page:
                    if message.created_at < window.start:
                        return messages
                    if self._should_include(message, window, excluded_author_id):
                        author = getattr(message.author, 'display_name', None) or message.author.name
                        messages.append(RawMessage(
                            author=author,
                            content=message.content,
                            timestamp=message.created_at,
                        ))
        except (discord.DiscordException, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            self.logger.warning(f"  ⚠️ Failed to fetch messages from #{getattr(channel, 'name', channel)}: {e}")
        finally:
            await pages.aclose()
        return messages


async def collect_all_messages(
    guilds: Iterable[discord.Guild],
    window: TimeWindow,
    excluded_author_id: Optional[int],
    collector: MessageCollector,
    logger: Optional[logging.Logger] = None,
) -> List[CommunityDigest]:
    """
    Collects messages from every text channel of every guild, one channel at a time.

    Channels without messages and guilds without such channels are left out,
    so an empty list means there is nothing to report.
    """
    logger = logger or logging.getLogger('DiscordBot')
    digests: List[CommunityDigest] = []

    for guild in guilds:
        logger.info(f"🏠 Server: {guild.name}")
        channel_digests: List[ChannelDigest] = []

        for channel in guild.text_channels:
            logger.info(f"  📝 Fetching messages from #{channel.name}...")
            messages = await collector.collect(channel, window, excluded_author_id)

            if messages:
                messages.sort(key=lambda m: m.timestamp)
                channel_digests.append(ChannelDigest(channel_name=channel.name, messages=tuple(messages)))
                logger.info(f"    → {len(messages)} messages")
            else:
                logger.info("    → no messages")

        if channel_digests:
            digests.append(CommunityDigest(name=guild.name, channels=tuple(channel_digests)))

    return digests
