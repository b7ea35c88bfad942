"""
LLM provider abstraction using LiteLLM.

The assistant treats the model as text in, text out: one prompt, one
completed reply, bounded by a timeout.
"""

import asyncio
import logging
import os

from litellm import acompletion

from core.config import get_collaborator_timeout
from core.errors import LLMError

logger = logging.getLogger(__name__)


# Default provider - can be overridden per-call or via environment
DEFAULT_PROVIDER = os.environ.get("LLM_PROVIDER", "anthropic/claude-sonnet-4-6")

EMPTY_RESPONSE_FALLBACK = (
    "I apologize, but I couldn't generate a response at the moment."
)


async def generate(
    prompt: str,
    timeout: float | None = None,
    provider: str | None = None,
    max_tokens: int = 1024,
) -> str:
    """
    Generate a single completion for a prompt.

    Args:
        prompt: Full prompt text (sent as one user message)
        timeout: Seconds before the call is abandoned (default from config)
        provider: Model string like "anthropic/claude-sonnet-4-6"
        max_tokens: Maximum tokens in response

    Returns:
        The model's reply, stripped. An empty reply becomes a short apology.

    Raises:
        LLMError: If the call fails or times out
    """
    model = provider or DEFAULT_PROVIDER
    timeout = timeout if timeout is not None else get_collaborator_timeout()

    try:
        response = await asyncio.wait_for(
            acompletion(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error(f"LLM call to {model} timed out after {timeout}s")
        raise LLMError(f"LLM response timeout after {timeout}s") from e
    except Exception as e:
        logger.error(f"LLM call to {model} failed: {e}")
        raise LLMError(f"LLM call failed: {e}") from e

    content = response.choices[0].message.content if response.choices else None
    text = (content or "").strip()
    if not text:
        return EMPTY_RESPONSE_FALLBACK
    return text
