"""
LLM client access for the digest pipeline.
"""
from .gemini_client import GeminiClient, extract_text

__all__ = [
    "GeminiClient",
    "extract_text",
]
