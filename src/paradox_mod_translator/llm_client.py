"""LLM API client utilities."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from openai import (
    AsyncOpenAI,
    APIConnectionError,
    RateLimitError,
    AuthenticationError,
    APIStatusError,
)

from .config import ClientSettings
from .errors import (
    ApiRequestError,
    ApiStatusError,
    AuthenticationFailedError,
    RateLimitedError,
    TranslateError,
)

logger = logging.getLogger(__name__)

# 退避基数（秒）：第 n 次重试等待 base * 2**n + jitter
RETRY_BASE_DELAY = 2.0
RATE_LIMIT_BASE_DELAY = 4.0


class APIErrorType(Enum):
    """API 错误类型分类。"""
    RATE_LIMIT = "rate_limit"      # 429 - 可重试
    CONNECTION = "connection"       # 网络问题/超时 - 可重试
    AUTH = "auth"                   # 401 - 不可重试
    STATUS = "status"               # 其他非 2xx - 不可重试
    UNKNOWN = "unknown"


def classify_error(error: Exception) -> tuple[APIErrorType, bool]:
    """
    分类 API 错误并判断是否可重试。

    Returns:
        (错误类型, 是否可重试)
    """
    if isinstance(error, RateLimitError):
        return APIErrorType.RATE_LIMIT, True
    elif isinstance(error, APIConnectionError):
        # APITimeoutError is a subclass
        return APIErrorType.CONNECTION, True
    elif isinstance(error, AuthenticationError):
        return APIErrorType.AUTH, False
    elif isinstance(error, APIStatusError):
        return APIErrorType.STATUS, False
    else:
        return APIErrorType.UNKNOWN, False


def backoff_delay(attempt: int, error_type: APIErrorType) -> float:
    """
    Delay before retry number ``attempt`` (0-based).

    Exponential with up to half a base step of jitter, so consecutive
    delays always grow.
    """
    base = RATE_LIMIT_BASE_DELAY if error_type == APIErrorType.RATE_LIMIT else RETRY_BASE_DELAY
    return base * (2 ** attempt) + random.uniform(0, base / 2)


def _to_translate_error(error: Exception, error_type: APIErrorType) -> TranslateError:
    """Map an SDK exception onto this package's error taxonomy."""
    if error_type == APIErrorType.AUTH:
        return AuthenticationFailedError(f"Authentication failed: {error}")
    if error_type == APIErrorType.RATE_LIMIT:
        return RateLimitedError(f"Rate limited: {error}")
    if error_type == APIErrorType.CONNECTION:
        return ApiRequestError(f"API request failed: {error}")
    if isinstance(error, APIStatusError):
        return ApiStatusError(error.status_code, error.response.text)
    return ApiRequestError(f"Unexpected API error: {error}")


@dataclass(frozen=True)
class ChatResult:
    """Text and accounting returned by one chat completion."""

    content: str
    finish_reason: Optional[str] = None
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


def system_message(content: str) -> Dict[str, str]:
    return {"role": "system", "content": content}


def user_message(content: str) -> Dict[str, str]:
    return {"role": "user", "content": content}


class ChatClient:
    """
    OpenAI-compatible chat client with retry handling.

    Connection failures, timeouts and rate limits are retried up to
    ``settings.max_retries`` times; authentication failures and other non-2xx
    answers fail at once.
    """

    def __init__(
        self,
        settings: ClientSettings,
        api_key: str,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.settings = settings
        # SDK 自带重试关闭，由本类统一处理
        self._client = client or create_client(
            api_key, settings.api_base, settings.timeout_secs
        )

    def _request_params(self, messages: List[Dict[str, str]]) -> Dict:
        params: Dict = {
            "model": self.settings.model,
            "messages": messages,
            "temperature": self.settings.temperature,
        }
        if self.settings.max_tokens is not None:
            params["max_tokens"] = self.settings.max_tokens
        if self.settings.stream:
            params["stream"] = True
        return params

    async def _send(self, messages: List[Dict[str, str]]) -> ChatResult:
        params = self._request_params(messages)

        if self.settings.stream:
            parts: List[str] = []
            finish_reason = None
            stream = await self._client.chat.completions.create(**params)
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.delta and choice.delta.content:
                    parts.append(choice.delta.content)
                if choice.finish_reason:
                    finish_reason = choice.finish_reason
            return ChatResult(content="".join(parts), finish_reason=finish_reason)

        response = await self._client.chat.completions.create(**params)
        if not response.choices:
            return ChatResult(content="")

        choice = response.choices[0]
        usage = response.usage
        return ChatResult(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            total_tokens=usage.total_tokens if usage else 0,
        )

    async def chat_completion(self, messages: List[Dict[str, str]]) -> ChatResult:
        """
        Send one chat completion request, retrying transient failures.

        Args:
            messages: Role-tagged messages

        Returns:
            ChatResult with the response text and token usage

        Raises:
            AuthenticationFailedError: on 401, never retried
            ApiStatusError: on any other non-2xx status except 429
            RateLimitedError: when still rate limited after all retries
            ApiRequestError: when the transport keeps failing
        """
        max_retries = self.settings.max_retries

        for attempt in range(max_retries + 1):
            try:
                return await self._send(messages)

            except Exception as e:
                error_type, retryable = classify_error(e)
                if error_type == APIErrorType.UNKNOWN:
                    raise

                if not retryable:
                    logger.error(f"Non-retryable error ({error_type.value}): {e}")
                    raise _to_translate_error(e, error_type) from e

                if attempt >= max_retries:
                    logger.error(f"All {max_retries} retries failed. Last error: {e}")
                    raise _to_translate_error(e, error_type) from e

                delay = backoff_delay(attempt, error_type)
                logger.warning(
                    f"Retryable error ({error_type.value}): {e}. "
                    f"Retry {attempt + 1}/{max_retries} in {delay:.1f}s..."
                )
                await asyncio.sleep(delay)

        # range() always returns or raises above
        raise ApiRequestError("No request attempted")

    async def close(self) -> None:
        await self._client.close()


def create_client(
    api_key: str,
    base_url: str = "https://api.deepseek.com",
    timeout: float = 600.0,
) -> AsyncOpenAI:
    """
    Create an AsyncOpenAI client.

    Args:
        api_key: API key for authentication
        base_url: API base URL
        timeout: Default timeout for requests

    Returns:
        Configured AsyncOpenAI client
    """
    return AsyncOpenAI(
        api_key=api_key,
        base_url=base_url,
        timeout=timeout,
        max_retries=0,
    )
