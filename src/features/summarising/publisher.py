import asyncio
import logging
from typing import List, Optional

import discord

from src.common.discord_utils import safe_send_message
from src.common.errors import ChannelNotFoundError
from src.common.rate_limiter import RateLimiter

# Discord's message length limit
MAX_MESSAGE_LENGTH = 2000
DEFAULT_HEADER = "📰 **This Week's Server Digest**\n\n"
DEFAULT_IMAGE_FILENAME = "weekly-digest.png"


def split_text(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Split text into chunks of at most max_length characters.

    Prefers breaking at the last newline within the limit unless it sits in
    the first half of the chunk, then the last space, then a hard cut.
    Whitespace at the start of each following chunk is dropped.
    """
    if max_length < 1:
        raise ValueError("max_length must be at least 1")

    chunks = []
    remaining = text

    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break

        split_index = remaining.rfind("\n", 0, max_length + 1)
        if split_index == -1 or split_index < max_length * 0.5:
            split_index = remaining.rfind(" ", 0, max_length + 1)
        if split_index <= 0:
            split_index = max_length

        chunks.append(remaining[:split_index])
        remaining = remaining[split_index:].lstrip()

    return chunks


class SummaryPublisher:
    """Posts the digest text and image to the summary channel."""

    def __init__(self, logger: Optional[logging.Logger] = None, rate_limiter: Optional[RateLimiter] = None,
                 max_length: int = MAX_MESSAGE_LENGTH, chunk_delay: float = 0.5,
                 header: str = DEFAULT_HEADER, image_filename: str = DEFAULT_IMAGE_FILENAME):
        self.logger = logger or logging.getLogger('DiscordBot')
        self.rate_limiter = rate_limiter or RateLimiter()
        self.max_length = max_length
        self.chunk_delay = chunk_delay
        self.header = header
        self.image_filename = image_filename

    async def resolve_channel(self, bot: discord.Client, channel_id: int) -> discord.abc.Messageable:
        channel = bot.get_channel(channel_id)
        if channel is None:
            self.logger.debug(f"Channel {channel_id} not in cache, fetching via API")
            try:
                channel = await bot.fetch_channel(channel_id)
            except (discord.NotFound, discord.Forbidden, discord.InvalidData) as e:
                raise ChannelNotFoundError(
                    f"Channel {channel_id} not found. Check that the bot can access this channel ID."
                ) from e

        if channel is None or not hasattr(channel, 'send'):
            raise ChannelNotFoundError(f"Channel {channel_id} not found or cannot receive messages.")
        return channel

    async def _send(self, channel, content: Optional[str] = None, image_bytes: Optional[bytes] = None):
        return await safe_send_message(
            channel,
            self.rate_limiter,
            self.logger,
            content=content,
            file_bytes=image_bytes,
            filename=self.image_filename,
        )

    async def publish(self, bot: discord.Client, channel_id: int, summary: str, image_bytes: bytes) -> None:
        channel = await self.resolve_channel(bot, channel_id)

        combined = self.header + summary
        if len(combined) <= self.max_length:
            await self._send(channel, content=combined, image_bytes=image_bytes)
        else:
            await self._send(channel, content=self.header, image_bytes=image_bytes)

            chunks = split_text(summary, self.max_length)
            self.logger.info(f"Summary is {len(summary)} characters, posting in {len(chunks)} chunks")
            for index, chunk in enumerate(chunks):
                if index > 0 and self.chunk_delay > 0:
                    await asyncio.sleep(self.chunk_delay)
                await self._send(channel, content=chunk)

        self.logger.info(f"✅ Posted digest to #{getattr(channel, 'name', channel_id)}")
