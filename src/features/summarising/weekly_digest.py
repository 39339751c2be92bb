import logging
from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional

import discord

from src.common.error_handler import handle_errors

from .collector import MessageCollector, collect_all_messages
from .formatter import count_messages, format_messages_for_summary
from .image_pipeline import ImagePipeline
from .models import GeneratedArtifact
from .period import get_target_period
from .publisher import SummaryPublisher
from .summary_generator import SummaryGenerator


class WeeklyDigest:
    """
    Runs the weekly digest once: collect, summarise, illustrate, publish.

    An empty collection ends the run early without any generation calls or
    posts. Any other failure propagates to the caller.
    """

    def __init__(self, collector: MessageCollector, summary_generator: SummaryGenerator,
                 image_pipeline: ImagePipeline, publisher: SummaryPublisher, summary_channel_id: int,
                 logger: Optional[logging.Logger] = None, display_tz: tzinfo = timezone.utc,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.collector = collector
        self.summary_generator = summary_generator
        self.image_pipeline = image_pipeline
        self.publisher = publisher
        self.summary_channel_id = summary_channel_id
        self.logger = logger or logging.getLogger('DiscordBot')
        self.display_tz = display_tz
        self.clock = clock

    @handle_errors("generate_artifact")
    async def generate_artifact(self, corpus: str) -> GeneratedArtifact:
        summary = await self.summary_generator.summarize(corpus)
        image = await self.image_pipeline.generate(summary)
        return GeneratedArtifact(summary_text=summary, image_bytes=image)

    @handle_errors("publish_digest")
    async def publish(self, bot: discord.Client, artifact: GeneratedArtifact) -> None:
        await self.publisher.publish(bot, self.summary_channel_id, artifact.summary_text, artifact.image_bytes)

    async def run(self, bot: discord.Client) -> bool:
        """Returns True if a digest was posted, False if there was nothing to report."""
        window = get_target_period(self.clock(), display_tz=self.display_tz)

        digests = await collect_all_messages(bot.guilds, window, bot.user.id, self.collector, self.logger)
        if not digests:
            self.logger.info("📭 No messages found in the target period. Skipping the digest.")
            return False

        corpus = format_messages_for_summary(digests, self.display_tz)
        self.logger.info(f"📊 Total messages: {count_messages(digests)} across {len(digests)} server(s)")

        artifact = await self.generate_artifact(corpus)
        await self.publish(bot, artifact)

        self.logger.info("🎉 Weekly digest complete!")
        return True
