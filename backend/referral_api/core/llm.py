# backend/referral_api/core/llm.py
"""
Gemini LLM handle (LangChain wrapper).
- Uses ChatGoogleGenerativeAI with SCORING_OPTIONS["model"], temperature=0
- Reads API key via core.config.get_gemini_api_key()
- Built on first use, so importing the pipeline does not need a key
- Client-side retries are off; the scoring step owns the attempt budget
"""

from __future__ import annotations

from functools import lru_cache

from langchain_google_genai import ChatGoogleGenerativeAI

from .config import SCORING_OPTIONS, get_gemini_api_key


@lru_cache(maxsize=1)
def get_llm() -> ChatGoogleGenerativeAI:
    return ChatGoogleGenerativeAI(
        model=SCORING_OPTIONS["model"],
        temperature=SCORING_OPTIONS["temperature"],
        api_key=get_gemini_api_key(),
        timeout=SCORING_OPTIONS["timeout_s"],
        max_retries=0,
    )


__all__ = ["get_llm"]
