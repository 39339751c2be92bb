import io
import logging
from typing import Optional

import discord

from src.common.rate_limiter import RateLimiter
from src.common.error_handler import handle_errors


@handle_errors("safe_send_message")
async def safe_send_message(
    channel: discord.abc.Messageable,
    rate_limiter: RateLimiter,
    logger: logging.Logger,
    content: Optional[str] = None,
    file_bytes: Optional[bytes] = None,
    filename: str = "image.png",
) -> Optional[discord.Message]:
    """
    Sends a message to a channel through the rate limiter.

    Args:
        channel: The Discord channel, thread, or user to send the message to.
        rate_limiter: An instance of the RateLimiter.
        logger: A logger instance for logging specific operational details.
        content: The content of the message.
        file_bytes: Raw bytes of an attachment to send with the message.
        filename: File name shown for the attachment.

    Returns:
        The sent discord.Message object.
        Raises on failure after the rate limiter's retries.
    """
    def send_factory():
        # A discord.File consumes its stream on send, so build one per attempt.
        kwargs = {}
        if content is not None:
            kwargs['content'] = content
        if file_bytes is not None:
            kwargs['file'] = discord.File(io.BytesIO(file_bytes), filename=filename)
        return channel.send(**kwargs)

    channel_label = getattr(channel, 'name', None) or getattr(channel, 'id', 'unknown')
    logger.debug(f"Sending message to {channel_label} (chars={len(content) if content else 0}, attachment={file_bytes is not None})")
    return await rate_limiter.execute(getattr(channel, 'id', channel_label), send_factory)
