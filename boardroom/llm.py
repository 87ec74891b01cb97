from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from loguru import logger
from langchain_openai import ChatOpenAI

from .settings import Settings, load_env


load_env()


@lru_cache(maxsize=8)
def get_openai_chat(
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> Optional[ChatOpenAI]:
    """Return a cached LangChain ChatOpenAI client using env configuration.

    Env vars:
      - OPENAI_API_KEY (required)
      - OPENAI_MODEL (optional; default: gpt-4o-mini)
      - OPENAI_TEMPERATURE (optional)
    """
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        logger.error("OPENAI_API_KEY not set; cannot initialize OpenAI chat client")
        return None
    defaults = Settings.from_env()
    mdl = model or defaults.model
    if temperature is None:
        temperature = defaults.temperature
    logger.debug(f"Initializing OpenAI chat model={mdl} temperature={temperature} max_tokens={max_tokens}")
    kwargs = {"model": mdl, "temperature": temperature, "api_key": api_key}
    if max_tokens:
        kwargs["max_tokens"] = max_tokens
    return ChatOpenAI(**kwargs)


def require_chat(model: Optional[str] = None, temperature: Optional[float] = None, max_tokens: Optional[int] = None) -> ChatOpenAI:
    chat = get_openai_chat(model, temperature, max_tokens)
    if chat is None:
        raise RuntimeError("OpenAI chat client not initialized; set OPENAI_API_KEY (and optionally OPENAI_MODEL)")
    return chat
