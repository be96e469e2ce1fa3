"""
Assistant Client - pass-through chat over an OpenAI-compatible endpoint.

The assistant screen keeps no state of its own: the UI sends the whole
chronological transcript, we prepend the system prompt, and stream the
reply back as text deltas.

Upstream failures are mapped so the UI can tell them apart:
- 429 (rate limit)                     -> AssistantRateLimited
- 402 / insufficient_quota             -> AssistantQuotaExceeded
- anything else (incl. no API key)     -> AssistantUnavailable
"""
import logging
from typing import Iterator, List

import openai
from openai import OpenAI

from career_connect.core.config import get_settings
from career_connect.core.errors import (
    AssistantQuotaExceeded, AssistantRateLimited, AssistantUnavailable
)
from career_connect.schemas.schemas import AssistantMessage

logger = logging.getLogger(__name__)

settings = get_settings()

SYSTEM_PROMPT = """You are a career assistant on a platform that connects students, employers and mentors.
Help with career advice, interview preparation, resume feedback and professional messaging.
Keep answers practical and concise. If asked about something unrelated to careers or learning, politely steer back."""


def _is_quota_error(error: openai.APIStatusError) -> bool:
    return error.status_code == 402 or getattr(error, "code", None) == "insufficient_quota"


class AssistantClient:
    """
    Wrapper over the completion endpoint with streaming replies.
    """

    def __init__(self, client: OpenAI = None, model: str = None):
        self._client = client
        self.model = model or settings.assistant_model

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not settings.assistant_api_key:
                raise AssistantUnavailable("Assistant is not configured")
            self._client = OpenAI(
                api_key=settings.assistant_api_key,
                base_url=settings.assistant_base_url
            )
        return self._client

    def _build_messages(self, transcript: List[AssistantMessage]) -> List[dict]:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend({"role": m.role.value, "content": m.content} for m in transcript)
        return messages

    def open_stream(self, transcript: List[AssistantMessage]) -> Iterator[str]:
        """
        Start a streamed completion and return an iterator of text deltas.

        The request is sent before returning, so upstream rejections raise
        here rather than halfway through a response.
        """
        try:
            stream = self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(transcript),
                max_tokens=settings.assistant_max_tokens,
                temperature=0.7,
                stream=True,
            )
        except openai.RateLimitError as e:
            if _is_quota_error(e):
                raise AssistantQuotaExceeded() from e
            raise AssistantRateLimited() from e
        except openai.APIStatusError as e:
            if _is_quota_error(e):
                raise AssistantQuotaExceeded() from e
            logger.error("Assistant endpoint returned %s", e.status_code)
            raise AssistantUnavailable() from e
        except openai.APIError as e:
            logger.error("Assistant endpoint unreachable: %s", e)
            raise AssistantUnavailable() from e

        return self._deltas(stream)

    def _deltas(self, stream) -> Iterator[str]:
        for chunk in stream:
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    def test_connection(self) -> bool:
        """Test if the completion endpoint is reachable"""
        try:
            reply = "".join(self.open_stream([AssistantMessage(role="user", content="Reply with exactly: OK")]))
            return "OK" in reply.upper()
        except (AssistantRateLimited, AssistantQuotaExceeded, AssistantUnavailable) as e:
            logger.error("Assistant connection failed: %s", e.message)
            return False


# Singleton instance
_assistant_client: AssistantClient = None


def get_assistant_client() -> AssistantClient:
    """Get or create assistant client (singleton pattern)"""
    global _assistant_client
    if _assistant_client is None:
        _assistant_client = AssistantClient()
    return _assistant_client
