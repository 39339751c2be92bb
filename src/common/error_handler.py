import functools
import logging
import traceback
from typing import Optional

import discord

logger = logging.getLogger('DiscordBot')

# Discord caps DMs at 2000 characters; leave room for the formatting.
MAX_ADMIN_MESSAGE_LENGTH = 1900


def handle_errors(operation_name: str):
    """Logs any exception escaping the wrapped coroutine, then re-raises it."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error in {operation_name}: {e}")
                logger.debug(traceback.format_exc())
                raise
        return wrapper
    return decorator


class ErrorHandler:
    def __init__(self, bot: Optional[discord.Client] = None, admin_user_id: Optional[int] = None):
        self.bot = bot
        self.admin_user_id = admin_user_id
        self.logger = logging.getLogger('DiscordBot')

    async def notify_admin(self, error: BaseException, context: str = "") -> bool:
        """Send error notification to the admin user. Returns True if the DM was sent."""
        if not self.bot or not self.admin_user_id:
            self.logger.debug("Admin notification skipped: no bot or ADMIN_USER_ID configured")
            return False

        try:
            admin_user = await self.bot.fetch_user(self.admin_user_id)

            error_msg = "🚨 **Weekly digest failed**\n"
            if context:
                error_msg += f"**Context:** {context}\n"
            error_msg += f"**Error:** {type(error).__name__}: {error}"
            if len(error_msg) > MAX_ADMIN_MESSAGE_LENGTH:
                error_msg = error_msg[:MAX_ADMIN_MESSAGE_LENGTH] + "..."

            await admin_user.send(error_msg)
            return True
        except Exception as e:
            self.logger.error(f"Failed to send error notification to admin: {e}")
            return False
