import base64
import logging
from typing import Any, List, Optional, Sequence

from google.genai import types

from src.common.errors import EmptyGenerationError, ImageGenerationExhaustedError, RetryExhaustedError
from src.common.llm import GeminiClient
from src.common.retry import log_failed_attempt, with_retry

from .assets import AssetStore
from .models import ReferenceAsset

# Low temperature keeps the model close to the prompt and reference images
IMAGE_TEMPERATURE = 0.4
SUMMARY_EXCERPT_CHARS = 1000


class ImagePipeline:
    """Derives an illustration prompt from the digest and renders it with the image model."""

    _PROMPT_REQUEST = """You are an illustrator. Write a single image-generation prompt for one
"weekly picture diary" style illustration that captures the Discord server's week described below.

## Style guidance
- Cute, colourful pop illustration
- Bright and cheerful mood
- Depict a scene that symbolises the server's activity this week
- Do not put any written text inside the image

## Weekly summary
{summary}

Respond with the prompt only, no explanations."""

    _IMAGE_DIRECTIVE = "Generate an image. Do not answer with text only; the response must contain an image."

    def __init__(self, client: GeminiClient, text_model: str, image_model: str, asset_store: AssetStore,
                 logger: Optional[logging.Logger] = None, max_attempts: int = 3, retry_delay: float = 2.0,
                 temperature: float = IMAGE_TEMPERATURE):
        self.client = client
        self.text_model = text_model
        self.image_model = image_model
        self.asset_store = asset_store
        self.logger = logger or logging.getLogger('DiscordBot')
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.temperature = temperature

    def build_prompt_request(self, summary: str, style: Optional[ReferenceAsset],
                             characters: Sequence[ReferenceAsset]) -> str:
        request = self._PROMPT_REQUEST.format(summary=summary[:SUMMARY_EXCERPT_CHARS])

        # Reference numbering follows the part order built in build_contents
        notes = []
        next_index = 1
        if style is not None:
            notes.append(f"- Match the art style of reference image {next_index}.")
            next_index += 1
        for character in characters:
            notes.append(f"- The character {character.name} corresponds to reference image {next_index}; "
                         f"keep their appearance consistent with it.")
            next_index += 1

        if notes:
            request += ("\n\nReference images will be supplied alongside the prompt. "
                        "Include these instructions in the prompt:\n" + "\n".join(notes))
        return request

    def build_contents(self, image_prompt: str, style: Optional[ReferenceAsset],
                       characters: Sequence[ReferenceAsset]) -> List[types.Part]:
        contents = [
            types.Part.from_text(text=self._IMAGE_DIRECTIVE),
            types.Part.from_text(text=image_prompt),
        ]
        if style is not None:
            contents.append(types.Part.from_bytes(data=style.data, mime_type=style.mime_type))
        for character in characters:
            contents.append(types.Part.from_bytes(data=character.data, mime_type=character.mime_type))
        return contents

    def extract_image(self, response: Any) -> bytes:
        candidates = getattr(response, 'candidates', None) or []
        if not candidates:
            raise EmptyGenerationError("Image response contained no candidates")

        candidate = candidates[0]
        finish_reason = getattr(candidate, 'finish_reason', None)
        if finish_reason is not None and getattr(finish_reason, 'name', str(finish_reason)) != 'STOP':
            self.logger.warning(f"Image generation finished with reason {finish_reason}; checking for image data anyway")

        content = getattr(candidate, 'content', None)
        for part in getattr(content, 'parts', None) or []:
            inline_data = getattr(part, 'inline_data', None)
            data = getattr(inline_data, 'data', None) if inline_data is not None else None
            if data:
                return base64.b64decode(data) if isinstance(data, str) else bytes(data)

        raise EmptyGenerationError("Image response did not contain image data")

    async def _attempt(self, summary: str, style: Optional[ReferenceAsset],
                       characters: Sequence[ReferenceAsset]) -> bytes:
        image_prompt = await self.client.generate_text(
            self.text_model, self.build_prompt_request(summary, style, characters)
        )
        if not image_prompt:
            raise EmptyGenerationError("Gemini returned an empty image prompt")
        self.logger.debug(f"Image prompt: {image_prompt}")

        config = types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            temperature=self.temperature,
        )
        response = await self.client.generate_content(
            self.image_model, self.build_contents(image_prompt, style, characters), config
        )
        return self.extract_image(response)

    async def generate(self, summary: str) -> bytes:
        """
        Generate the digest illustration.

        Reference assets are loaded once; every attempt re-derives the prompt
        before rendering so a bad prompt is never reused.

        Raises:
            ImageGenerationExhaustedError: If no attempt produced image data.
        """
        self.logger.info("🎨 Generating image...")
        style = self.asset_store.load_style()
        characters = self.asset_store.match_characters(summary)

        try:
            image = await with_retry(
                lambda: self._attempt(summary, style, characters),
                max_attempts=self.max_attempts,
                delay=self.retry_delay,
                on_failure=log_failed_attempt(self.logger, "Image generation"),
            )
        except RetryExhaustedError as e:
            raise ImageGenerationExhaustedError(e.attempts, e.last_error) from e.last_error

        self.logger.info(f"✅ Image generated ({len(image) / 1024:.1f} KB)")
        return image
