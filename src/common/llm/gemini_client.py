"""
Handles interactions with the Google Gemini API through the google-genai client.
"""
import asyncio
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

logger = logging.getLogger('DiscordBot')

DEFAULT_TIMEOUT = 180.0


def extract_text(response: Any) -> Optional[str]:
    """
    Pull the text payload out of a generation response.

    Response objects differ between SDK versions, so each known shape is
    probed in turn: a callable ``text`` accessor, a plain ``text`` field, then
    the text parts of the first candidate. Returns None if none yields text.
    """
    if response is None:
        return None

    try:
        text = getattr(response, 'text', None)
        if callable(text):
            text = text()
    except (ValueError, AttributeError, TypeError):
        # Some SDK versions raise from the accessor when there is no text part
        text = None
    if isinstance(text, str) and text.strip():
        return text.strip()

    try:
        parts = response.candidates[0].content.parts or []
    except (IndexError, AttributeError, TypeError):
        return None
    candidate_text = "".join(
        part.text for part in parts if isinstance(getattr(part, 'text', None), str)
    )
    return candidate_text.strip() or None


class GeminiClient:
    """Thin async wrapper around genai.Client, constructed once and passed to each stage."""

    def __init__(self, api_key: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT, client: Any = None):
        if client is None:
            if not api_key:
                raise ValueError("A Gemini API key is required to build GeminiClient")
            # wait_for abandons the executor thread but cannot stop it; the SDK
            # timeout (milliseconds) ends the HTTP call itself.
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout * 1000)),
            )
        self.client = client
        self.timeout = timeout
        logger.info("Gemini Client initialized via genai.Client()")

    async def generate_content(self, model: str, contents: Any,
                               config: Optional[types.GenerateContentConfig] = None) -> Any:
        """Runs client.models.generate_content in an executor, bounded by the client timeout."""
        logger.info(f"Making Gemini call: model={model}, config={'set' if config else 'default'}")
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(
                    None,
                    lambda: self.client.models.generate_content(
                        model=model,
                        contents=contents,
                        config=config,
                    )
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Gemini call to {model} timed out after {self.timeout}s")
            raise
        except Exception as e:
            logger.error(f"Error during Gemini API call ({model}): {e}", exc_info=True)
            raise

    async def generate_text(self, model: str, prompt: str) -> Optional[str]:
        """Sends a text-only prompt and returns the extracted text, or None if there is none."""
        response = await self.generate_content(model, prompt)
        text = extract_text(response)
        if not text:
            block_reason = getattr(getattr(response, 'prompt_feedback', None), 'block_reason', None)
            if block_reason:
                logger.warning(f"Gemini response blocked: {getattr(block_reason, 'name', block_reason)}")
            else:
                logger.warning("Gemini response missing text.")
        return text
