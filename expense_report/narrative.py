"""
Narrative module for Expense Report Service.

Handles the single Gemini API call that produces the "AI Insights" section.
Failures never propagate: every error becomes a NarrativeFallback carrying
the fixed fallback text, so callers only ever deal with a result value.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx

from .config import FALLBACK_TEXT, GEMINI_API_KEY, GEMINI_API_URL, NARRATIVE_TIMEOUT
from .models import ReportContext
from .prompts import get_narrative_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NarrativeOk:
    text: str

    @property
    def is_fallback(self) -> bool:
        return False


@dataclass(frozen=True)
class NarrativeFallback:
    text: str
    reason: str

    @property
    def is_fallback(self) -> bool:
        return True


NarrativeResult = Union[NarrativeOk, NarrativeFallback]


def extract_text(data: dict) -> Optional[str]:
    """
    Pull the generated text out of a generateContent response body.

    Returns:
        The stripped text, or None if the body does not have the expected shape
    """
    try:
        parts = data["candidates"][0]["content"]["parts"]
        text = "".join(part.get("text", "") for part in parts)
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return text.strip() or None


class NarrativeClient:
    """
    Client for the external text-generation service.

    One attempt per call, no retries. ``transport`` lets tests substitute
    an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        endpoint_url: str = GEMINI_API_URL,
        api_key: str = GEMINI_API_KEY,
        timeout: float = NARRATIVE_TIMEOUT,
        fallback_text: str = FALLBACK_TEXT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint_url = endpoint_url
        self.api_key = api_key
        self.timeout = timeout
        self.fallback_text = fallback_text
        self._transport = transport

    def _fallback(self, reason: str) -> NarrativeFallback:
        logger.warning(f"⚠️ AI summary unavailable, using fallback text: {reason}")
        return NarrativeFallback(text=self.fallback_text, reason=reason)

    async def summarize(self, context: ReportContext, instruction: Optional[str] = None) -> NarrativeResult:
        """
        Generate the narrative for a report.

        Args:
            context: Aggregated report data
            instruction: Optional instruction replacing the default prompt preamble

        Returns:
            NarrativeOk with the generated text, or NarrativeFallback on any failure
        """
        prompt = get_narrative_prompt(context, instruction)
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        logger.info("Requesting AI summary...")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint_url,
                    params={"key": self.api_key},
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException:
            return self._fallback(f"timeout after {self.timeout}s")
        except Exception as e:
            return self._fallback(f"request failed: {e}")

        if response.status_code != 200:
            return self._fallback(f"HTTP {response.status_code} - {response.text[:200]}")

        try:
            data = response.json()
        except ValueError:
            return self._fallback("response body is not JSON")

        text = extract_text(data)
        if not text:
            return self._fallback("response contained no text")

        logger.info(f"✓ AI summary generated ({len(text):,} characters)")
        return NarrativeOk(text=text)


class DisabledNarrativeClient:
    """Narrative client that never calls out and always falls back."""

    def __init__(self, fallback_text: str = FALLBACK_TEXT):
        self.fallback_text = fallback_text

    async def summarize(self, context: ReportContext, instruction: Optional[str] = None) -> NarrativeResult:
        return NarrativeFallback(text=self.fallback_text, reason="AI summary disabled")
