import asyncio
import logging
import random
import traceback

import discord


class RateLimiter:
    """Manages rate limiting for Discord API calls with exponential backoff."""

    def __init__(self, base_delay: float = 1.0, max_delay: float = 64.0, max_retries: int = 5,
                 jitter: float = 0.1, timeout: float = 30.0):
        self.backoff_times = {}  # Pending backoff per key, cleared on success
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.max_retries = max_retries
        self.jitter = jitter
        self.timeout = timeout
        self.logger = logging.getLogger('DiscordBot')

    def _next_delay(self, key) -> float:
        current_delay = self.backoff_times.get(key, self.base_delay / 2)
        next_delay = min(current_delay * 2, self.max_delay)
        self.backoff_times[key] = next_delay
        return next_delay

    async def execute(self, key, coroutine_factory):
        """
        Executes a coroutine factory with rate limit handling.

        Args:
            key: Identifier for the rate limit (e.g., channel_id)
            coroutine_factory: Callable returning a fresh coroutine for each attempt

        Returns:
            The result of the coroutine execution
        """
        if not callable(coroutine_factory):
            raise TypeError("coroutine_factory must be a callable that returns a coroutine")

        attempt = 0
        while True:
            if key in self.backoff_times:
                jitter = random.uniform(-self.jitter, self.jitter)
                await asyncio.sleep(self.backoff_times[key] * (1 + jitter))

            current_coro = coroutine_factory()
            if not asyncio.iscoroutine(current_coro):
                raise TypeError("coroutine_factory must return a coroutine")

            try:
                result = await asyncio.wait_for(current_coro, timeout=self.timeout)
                self.backoff_times.pop(key, None)
                return result

            except discord.HTTPException as e:
                attempt += 1
                if e.status == 429:
                    retry_after = getattr(e, 'retry_after', None)
                    if attempt >= self.max_retries:
                        self.logger.error(f"Rate limited on {key} after {attempt} attempts: {e}")
                        raise
                    if retry_after:
                        self.logger.warning(f"Rate limit hit for {key}. Retry after {retry_after}s")
                        await asyncio.sleep(retry_after)
                    else:
                        next_delay = self._next_delay(key)
                        self.logger.warning(f"Rate limit hit for {key}. Using exponential backoff: {next_delay}s")
                elif e.status >= 500 and attempt < self.max_retries:
                    next_delay = self._next_delay(key)
                    self.logger.warning(f"Discord API error (attempt {attempt}/{self.max_retries}): {e}. Retrying in {next_delay}s")
                else:
                    self.logger.error(f"Discord API error for {key}: {e}")
                    raise

            except asyncio.TimeoutError:
                # The request may already have reached Discord; retrying could post it twice
                self.backoff_times.pop(key, None)
                self.logger.error(f"Discord call for {key} timed out after {self.timeout}s; not retrying "
                                  f"because it may already have been delivered")
                raise

            except (OSError, ConnectionError) as e:
                attempt += 1
                if attempt >= self.max_retries:
                    self.logger.error(f"Network connectivity failed after {self.max_retries} attempts: {e}")
                    raise
                next_delay = self._next_delay(key)
                self.logger.warning(f"Network error (attempt {attempt}/{self.max_retries}) for {key}: {e}. Retrying in {next_delay}s")

            except Exception as e:
                self.logger.error(f"Unexpected error: {e}")
                self.logger.debug(traceback.format_exc())
                raise
