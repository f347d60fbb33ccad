"""Reasoning-service clients: Google Gemini (default) and a local Ollama model."""

import io
import logging
import re
from abc import ABC, abstractmethod

import google.generativeai as genai
import ollama
from PIL import Image

from ..config import Settings, get_settings
from ..errors import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```[a-zA-Z]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```/```json marker and a trailing ``` marker."""
    text = text.strip()
    text = _LEADING_FENCE.sub("", text)
    text = _TRAILING_FENCE.sub("", text)
    return text.strip()


class ReasoningClient(ABC):
    """Abstract base for a prompt-in, text-out model call."""

    name: str = "reasoning"

    @abstractmethod
    def complete(
        self,
        prompt: str,
        images: list[Image.Image] | None = None,
        max_output_tokens: int = 4096,
    ) -> str:
        """Send one prompt (optionally with page images) and return the reply text.

        Raises:
            MalformedResponseError: The reply's primary content is not text.
            TransportError: The call itself failed.
        """
        pass


class GeminiClient(ReasoningClient):
    """Google Gemini API client."""

    def __init__(
        self,
        api_key: str = None,
        model: str = None,
        timeout: float = None,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key (default: from settings).
            model: Gemini model name (default: from settings).
            timeout: Per-request timeout in seconds (default: from settings).
        """
        settings = get_settings()
        api_key = api_key or settings.gemini_api_key

        if not api_key:
            raise ValueError("Gemini API key not configured")

        self.model_name = model or settings.gemini_model
        self.timeout = timeout or settings.inference_timeout_seconds
        self.name = f"gemini/{self.model_name}"

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(self.model_name)

    def complete(
        self,
        prompt: str,
        images: list[Image.Image] | None = None,
        max_output_tokens: int = 4096,
    ) -> str:
        contents = [prompt, *(images or [])]

        try:
            response = self.model.generate_content(
                contents,
                generation_config=genai.GenerationConfig(
                    temperature=0.1,
                    max_output_tokens=max_output_tokens,
                ),
                request_options={"timeout": self.timeout},
            )
        except Exception as e:
            raise TransportError(f"Gemini error: {e}") from e

        # .text raises ValueError when the first candidate has no text part
        # (blocked prompt, function call, empty candidate list).
        try:
            text = response.text
        except ValueError as e:
            raise MalformedResponseError(f"Gemini returned non-text content: {e}") from e

        if not isinstance(text, str):
            raise MalformedResponseError("Gemini returned non-text content")
        return text


class OllamaClient(ReasoningClient):
    """Ollama-based local model client."""

    def __init__(
        self,
        model: str = None,
        host: str = None,
        timeout: float = None,
    ):
        """Initialize Ollama client.

        Args:
            model: Ollama model name (default: from settings).
            host: Ollama host URL (default: from settings).
            timeout: Per-request timeout in seconds (default: from settings).
        """
        settings = get_settings()
        self.model = model or settings.ollama_model
        self.host = host or settings.ollama_host
        self.timeout = timeout or settings.inference_timeout_seconds
        self.name = f"ollama/{self.model}"

        self.client = ollama.Client(host=self.host, timeout=self.timeout)

    def complete(
        self,
        prompt: str,
        images: list[Image.Image] | None = None,
        max_output_tokens: int = 4096,
    ) -> str:
        message = {"role": "user", "content": prompt}
        if images:
            message["images"] = [_png_bytes(image) for image in images]

        try:
            response = self.client.chat(
                model=self.model,
                messages=[message],
                options={"temperature": 0.1, "num_predict": max_output_tokens},
            )
        except Exception as e:
            raise TransportError(f"Ollama error: {e}") from e

        content = response["message"]["content"]
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponseError("Ollama returned non-text content")
        return content


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def build_reasoning_client(settings: Settings | None = None) -> ReasoningClient | None:
    """Create the configured reasoning client.

    Returns None when no reasoning service is configured; callers treat that
    as deterministic-only mode rather than an error.
    """
    settings = settings or get_settings()

    if not settings.inference_configured:
        logger.info("No reasoning service configured; using local matching only")
        return None

    if settings.reasoning_backend == "gemini":
        return GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.inference_timeout_seconds,
        )

    return OllamaClient(
        model=settings.ollama_model,
        host=settings.ollama_host,
        timeout=settings.inference_timeout_seconds,
    )
