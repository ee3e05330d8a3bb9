"""
LLM provider abstraction using LiteLLM.

Provides a unified interface for Claude, Gemini, and other providers.
"""

import os

from litellm import acompletion


# Default provider - can be overridden per-call or via environment
DEFAULT_PROVIDER = os.environ.get("LLM_PROVIDER", "gemini/gemini-1.5-flash")


async def complete(
    messages: list[dict],
    system: str,
    provider: str | None = None,
    response_format: dict | None = None,
    max_tokens: int = 1024,
    temperature: float = 0.2,
) -> str:
    """
    Run a single, non-streaming chat completion.

    Args:
        messages: List of {"role": "user"|"assistant", "content": str}
        system: System prompt
        provider: Model string like "anthropic/claude-sonnet-4-6" or "gemini/gemini-1.5-flash"
        response_format: Optional structured output schema (OpenAI format)
        max_tokens: Maximum tokens in response

    Returns:
        The text content of the first choice ("" if the model returned none).
    """
    # LiteLLM uses OpenAI-style messages with system as a message
    kwargs = {
        "model": provider or DEFAULT_PROVIDER,
        "messages": [{"role": "system", "content": system}] + messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    if response_format:
        kwargs["response_format"] = response_format

    response = await acompletion(**kwargs)
    return response.choices[0].message.content or ""
