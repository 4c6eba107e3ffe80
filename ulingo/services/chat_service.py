import logging
from functools import lru_cache
from typing import List, Optional, Sequence

import groq
from groq import AsyncGroq

from ulingo.config import get_settings
from ulingo.exceptions import ExternalServiceError
from ulingo.schemas.chat import ChatMessage

settings = get_settings()
logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful AI assistant for U-Lingo, a Mandarin Chinese learning app. "
    "Help users learn Mandarin by answering their questions about vocabulary, grammar, "
    "pronunciation, tones, and study tips. Be encouraging and educational."
)

WELCOME_MESSAGE = "Hello! I'm your U-Lingo AI assistant. Ask me anything about learning Mandarin!"


@lru_cache()
def get_client() -> AsyncGroq:
    # Configure Groq client
    return AsyncGroq(
        api_key=settings.GROQ_API_KEY,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        max_retries=1,
    )


def build_messages(history: Sequence[ChatMessage], message: str) -> List[dict]:
    """
    System prompt, then the conversation so far, then the new user message

    The greeting shown when the chat opens is UI text, not part of the
    conversation, so it is left out.
    """
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    for entry in history:
        if entry.role == "assistant" and entry.content == WELCOME_MESSAGE:
            continue
        messages.append({"role": entry.role, "content": entry.content})
    messages.append({"role": "user", "content": message.strip()})
    return messages


async def send_message(
    history: Sequence[ChatMessage],
    message: str,
    client: Optional[AsyncGroq] = None,
) -> str:
    """
    Отправить сообщение ассистенту

    Returns:
        str: reply text

    Raises:
        ExternalServiceError: not configured, timed out, or a bad answer came back
    """
    if client is None:
        if not settings.GROQ_API_KEY:
            raise ExternalServiceError("Chat assistant is not configured")
        client = get_client()

    try:
        response = await client.chat.completions.create(
            model=settings.GROQ_MODEL,
            messages=build_messages(history, message),
            temperature=0.5,
            max_tokens=800
        )
        reply = response.choices[0].message.content
    except groq.APIError as e:
        logger.error("Chat completion failed: %s", e)
        raise ExternalServiceError("The assistant is unavailable right now, please try again") from e
    except (IndexError, AttributeError) as e:
        logger.error("Chat completion returned an unexpected payload: %s", e)
        raise ExternalServiceError("The assistant sent an empty answer, please try again") from e

    if not reply:
        raise ExternalServiceError("The assistant sent an empty answer, please try again")
    return reply.strip()
