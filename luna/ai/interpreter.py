"""
Dream interpretation through the OpenAI chat-completion API.

Without a configured key the interpreter answers with a canned mock so the
rest of the service stays usable in development and tests.
"""

from typing import Optional

from luna.config import Settings, get_settings
from luna.logging_config import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are Luna, an expert dream interpreter with deep knowledge of psychology, "
    "symbolism, and spiritual meanings. Provide insightful, compassionate, and "
    "meaningful interpretations of dreams. Your responses should be thoughtful, "
    "encouraging, and help the person understand potential meanings and "
    "connections to their waking life."
)

MAX_TOKENS = 500
TEMPERATURE = 0.7


class InterpretationError(Exception):
    """The language model call failed or returned nothing."""


def is_placeholder_key(key: str) -> bool:
    return key.startswith("sk-your-") or key == "sk-your-openai-api-key"


class DreamInterpreter:
    """Turns a dream description into an interpretation."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        key = (self.settings.openai_api_key or "").strip()
        self.api_key: Optional[str] = key if key and not is_placeholder_key(key) else None
        self.model = self.settings.openai_model
        self._client = None

    @property
    def configured(self) -> bool:
        return self.api_key is not None

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def interpret(self, dream_text: str) -> str:
        """
        Interpret a dream.

        Raises:
            InterpretationError: If the API call fails or the reply is empty
        """
        if not self.configured:
            return self._mock_interpretation(dream_text)

        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f"Please interpret this dream: {dream_text}"},
                ],
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
            )
        except Exception as exc:
            logger.error("OpenAI request failed: %s", exc)
            raise InterpretationError("Failed to interpret dream. Please try again later.") from exc

        content = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not content:
            raise InterpretationError("No interpretation received")

        logger.info("Dream interpreted", extra={"model": self.model})
        return content

    def _mock_interpretation(self, dream_text: str) -> str:
        return (
            f'Mock interpretation for testing: Your dream about "{dream_text[:50]}..." '
            "suggests themes of transformation and personal growth. This is a "
            "placeholder response while the OpenAI API key is not configured."
        )
