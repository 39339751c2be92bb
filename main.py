import os
import sys
import argparse
import asyncio
import logging

from dotenv import load_dotenv

# Load environment variables BEFORE importing modules that might need them
current_dir = os.path.dirname(os.path.abspath(__file__))
env_path = os.path.join(current_dir, '.env')
load_dotenv(dotenv_path=env_path, override=True)

from src.common.base_bot import BaseDiscordBot
from src.common.config import DigestConfig
from src.common.error_handler import ErrorHandler
from src.common.errors import ConfigurationError
from src.common.llm import GeminiClient
from src.common.log_handler import LogHandler
from src.common.rate_limiter import RateLimiter
from src.features.summarising.assets import AssetStore
from src.features.summarising.collector import MessageCollector
from src.features.summarising.image_pipeline import ImagePipeline
from src.features.summarising.publisher import SummaryPublisher
from src.features.summarising.summary_generator import SummaryGenerator
from src.features.summarising.weekly_digest import WeeklyDigest


def setup_logging(dev_mode=False):
    """Setup shared logging configuration"""
    log_handler = LogHandler(
        logger_name='DiscordBot',
        prod_log_file='weekly_digest.log',
        dev_log_file='weekly_digest_dev.log'
    )
    return log_handler.setup_logging(dev_mode)


def build_weekly_digest(config: DigestConfig, logger: logging.Logger) -> WeeklyDigest:
    gemini_client = GeminiClient(api_key=config.gemini_api_key, timeout=config.gemini_timeout)
    asset_store = AssetStore(config.style_image_path, config.characters_dir, logger=logger)

    return WeeklyDigest(
        collector=MessageCollector(logger=logger, fetch_timeout=config.discord_timeout),
        summary_generator=SummaryGenerator(
            gemini_client,
            config.text_model,
            logger=logger,
            language=config.language,
            max_attempts=config.summary_max_attempts,
        ),
        image_pipeline=ImagePipeline(
            gemini_client,
            config.text_model,
            config.image_model,
            asset_store,
            logger=logger,
            max_attempts=config.image_max_attempts,
        ),
        publisher=SummaryPublisher(logger=logger, rate_limiter=RateLimiter(timeout=config.discord_timeout)),
        summary_channel_id=config.summary_channel_id,
        logger=logger,
        display_tz=config.timezone,
    )


async def main_async(args, config: DigestConfig, logger: logging.Logger) -> bool:
    weekly_digest = build_weekly_digest(config, logger)
    bot = BaseDiscordBot(logger=logger, dev_mode=args.dev)
    error_handler = ErrorHandler(bot, admin_user_id=config.admin_user_id)

    async def job(ready_bot):
        try:
            return await weekly_digest.run(ready_bot)
        except Exception as e:
            # The session is still open here, so the admin DM can go out before disconnecting
            await error_handler.notify_admin(e, context="weekly digest run")
            raise

    return await bot.run_once(config.bot_token, job)


def main():
    parser = argparse.ArgumentParser(description='Weekly Discord digest bot')
    parser.add_argument('--dev', action='store_true', help='Run in development mode')
    args = parser.parse_args()

    logger = setup_logging(dev_mode=args.dev)
    logger.info("🚀 Starting weekly digest run")

    try:
        config = DigestConfig.from_env(dev_mode=args.dev)
    except ConfigurationError as e:
        logger.error(f"Configuration Error: {e}")
        sys.exit(1)

    try:
        posted = asyncio.run(main_async(args, config, logger))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Weekly digest failed: {e}", exc_info=True)
        sys.exit(1)

    if posted:
        logger.info("Weekly digest posted successfully")
    else:
        logger.info("Nothing to report this week")


if __name__ == "__main__":
    main()
