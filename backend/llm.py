from typing import Optional
import logging

from openai import AsyncOpenAI

from config import settings
from prompts import build_shorten_messages

# ---------------------------------------------------------
# Configuration – optional OpenAI wiring for text shortening
# ---------------------------------------------------------
logger = logging.getLogger(__name__)

current_model = settings.OPENAI_MODEL

# Shortening parameters
TEMPERATURE = 0.5
MAX_TOKENS = 200

# HTTP client, None while the API key is absent
client: Optional[AsyncOpenAI] = None


def create_client(api_key: Optional[str] = None) -> Optional[AsyncOpenAI]:
    """Create (or drop) the AsyncOpenAI client from the configured key.

    Note: This function mutates the module-global `client` variable.
    """
    global client
    key = api_key if api_key is not None else settings.OPENAI_API_KEY
    if not key:
        client = None
        logger.warning("OpenAI integration is disabled. API key is missing.")
        return None
    client = AsyncOpenAI(api_key=key)
    return client


async def initialize_models():
    """Startup hook: build the client when a key is configured."""
    create_client()
    logger.info(f"AI shortening {'enabled' if client is not None else 'disabled'}; model={current_model}")


def is_ai_enabled() -> bool:
    return client is not None


def get_current_model() -> str:
    return current_model


async def generate_short_description(long_description: str) -> Optional[str]:
    """Condense ``long_description`` to a short blurb.

    Returns None when the integration is disabled, the model answers with
    nothing, or the request fails.
    """
    if client is None:
        logger.warning("OpenAI integration is disabled. API key is missing.")
        return None

    try:
        response = await client.chat.completions.create(
            model=current_model,
            messages=build_shorten_messages(long_description),
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
        )
    except Exception as e:
        logger.error(f"Error generating short description: {e}")
        return None

    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError):
        content = None
    text = (content or "").strip()
    return text or None
