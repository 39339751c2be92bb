import logging
from typing import Optional

from src.common.errors import EmptyGenerationError, RetryExhaustedError
from src.common.llm import GeminiClient
from src.common.retry import log_failed_attempt, with_retry


class SummaryGenerator:
    """Turns the week's formatted conversation log into the digest text."""

    _SUMMARY_PROMPT = """You are the weekly report writer for a Discord server.
Below is the conversation log from the server's past week.
Read it and write a "weekly picture diary" that sums up what happened on the server this week.

## Rules
- Summarize the main topics and highlights of each channel
- Use participants' names exactly as they appear in the log
- Keep the tone fun and easy to read
- Use emoji in moderation to help readability
- Keep it concise: no more than {max_chars} characters
- This will be posted to Discord, so Markdown bold (**text**) is allowed
- Channels without any notable conversation may be skipped

## Conversation log
{corpus}

## Output
Write the weekly digest based on the conversations above, in {language}."""

    def __init__(self, client: GeminiClient, model: str, logger: Optional[logging.Logger] = None,
                 language: str = "English", max_chars: int = 1500,
                 max_attempts: int = 1, retry_delay: float = 2.0):
        self.client = client
        self.model = model
        self.logger = logger or logging.getLogger('DiscordBot')
        self.language = language
        self.max_chars = max_chars
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    def build_prompt(self, corpus: str) -> str:
        return self._SUMMARY_PROMPT.format(max_chars=self.max_chars, corpus=corpus, language=self.language)

    async def _attempt(self, prompt: str) -> str:
        summary = await self.client.generate_text(self.model, prompt)
        if not summary:
            raise EmptyGenerationError("Gemini response did not contain any summary text")
        return summary

    async def summarize(self, corpus: str) -> str:
        """
        Generate the digest text for a formatted corpus.

        Raises:
            EmptyGenerationError: If no text could be extracted from the response.
            Exception: API errors from the final attempt propagate unchanged.
        """
        self.logger.info("🤖 Generating summary with Gemini...")
        prompt = self.build_prompt(corpus)
        try:
            summary = await with_retry(
                lambda: self._attempt(prompt),
                max_attempts=self.max_attempts,
                delay=self.retry_delay,
                on_failure=log_failed_attempt(self.logger, "Summary generation"),
            )
        except RetryExhaustedError as e:
            raise e.last_error from None

        self.logger.info(f"✅ Summary generated ({len(summary)} characters)")
        return summary
