"""
Mistral chat provider

Mistral exposes an OpenAI-compatible chat completions API.
"""

import logging
from typing import Optional

from ..config import config
from .base import AuthenticationError, ChatService, ProviderError, TransportError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are EcoBee, a friendly sustainability coach.
You help people understand their environmental impact score across the
planetary boundaries and suggest small, practical changes.
Keep answers short, specific, and encouraging.

User context:
{context}"""


class MistralChatService(ChatService):
    """
    Mistral chat provider.

    API key is read from:
    1. Constructor argument
    2. MISTRAL_API_KEY environment variable
    """

    BASE_URL = "https://api.mistral.ai/v1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: Optional[str] = None,
        base_url: Optional[str] = None,
        client=None,
    ):
        """
        Initialize Mistral provider.

        Args:
            api_key: Mistral API key (falls back to config)
            default_model: Model to use (falls back to config)
            base_url: API base URL (defaults to Mistral's API)
            client: Pre-built AsyncOpenAI-compatible client (used by tests)
        """
        self._api_key = api_key or config.chat.mistral_api_key
        self._default_model = default_model or config.chat.model
        self._base_url = base_url or self.BASE_URL
        self._client = client

    def _get_client(self):
        """Lazy initialization of OpenAI client for Mistral."""
        if self._client is None:
            if not self._api_key:
                raise AuthenticationError(
                    "No Mistral API key provided. Set MISTRAL_API_KEY or pass api_key to constructor."
                )
            try:
                from openai import AsyncOpenAI
                self._client = AsyncOpenAI(
                    api_key=self._api_key,
                    base_url=self._base_url,
                )
            except ImportError:
                raise ProviderError("openai package not installed. Run: pip install openai")
        return self._client

    @property
    def name(self) -> str:
        return "mistral"

    @property
    def default_model(self) -> str:
        return self._default_model

    async def reply(self, message: str, context: str, *, model: Optional[str] = None) -> str:
        """Get a chat reply from Mistral."""
        client = self._get_client()
        model = model or self._default_model

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT.format(context=context)},
                    {"role": "user", "content": message},
                ],
                max_tokens=config.chat.max_tokens,
                temperature=config.chat.temperature,
            )
        except Exception as e:
            error_str = str(e).lower()
            if "auth" in error_str or "401" in error_str or "api key" in error_str:
                raise AuthenticationError(f"Mistral authentication failed: {e}") from e
            raise TransportError(f"Mistral API error: {e}") from e

        content = ""
        if response.choices and response.choices[0].message:
            content = response.choices[0].message.content or ""

        if response.usage:
            logger.debug(
                f"Mistral {model}: {response.usage.prompt_tokens} in, "
                f"{response.usage.completion_tokens} out"
            )
        return content

    async def aclose(self) -> None:
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None
