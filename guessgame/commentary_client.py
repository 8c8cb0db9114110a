"""
- HTTP call with clear fallback
Ask Gemini for a one-line reaction to the latest guess. If there is no API key,
or anything goes wrong (no internet, timeout, bad response), we return a fixed
placeholder so the game never waits on or fails because of commentary.

One attempt per guess, no retries.
"""

import logging
from typing import List, Optional

import requests

from .config import settings
from .engine import verdict_text
from .types import Verdict

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

FALLBACK_COMMENT = "화이팅!"
EMPTY_COMMENT = "좋은 시도예요!"
PENDING_COMMENT = "..."


def build_prompt(guess: int, result: str, history_values: List[int], language: str = "Korean") -> str:
    previous = ", ".join(str(v) for v in history_values)
    return (
        "You are a witty game host for a number guessing game (1-100). "
        f"The player just guessed {guess} and the result was {result}. "
        f"Previous guesses: {previous}. "
        f"Give a very short, one-sentence encouraging or witty reaction in {language}. "
        "Keep it under 20 characters."
    )


def _extract_text(body: dict) -> str:
    # candidates[0].content.parts[*].text
    candidates = body.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts).strip()


class CommentaryClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        language: Optional[str] = None,
    ):
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.model = model or settings.gemini_model
        self.timeout = timeout or settings.commentary_timeout
        self.language = language or settings.commentary_language

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def comment(self, guess: int, verdict: Verdict, history_values: List[int]) -> str:
        """
        history_values: every guess so far, oldest first, including this one.
        Always returns text; never raises for provider problems.
        """
        if not self.enabled:
            return FALLBACK_COMMENT

        payload = {
            "contents": [
                {"parts": [{"text": build_prompt(guess, verdict_text(verdict), history_values, self.language)}]}
            ]
        }

        try:
            response = requests.post(
                GEMINI_URL.format(model=self.model),
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            text = _extract_text(response.json())
        except (requests.RequestException, ValueError, AttributeError, TypeError) as exc:
            # ValueError covers a non-JSON body; Attribute/TypeError an unexpected shape
            logger.warning("Commentary request failed for guess %s: %s", guess, exc)
            return FALLBACK_COMMENT

        return text or EMPTY_COMMENT
