"""Core translation logic using LLM."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Union

from tqdm.asyncio import tqdm_asyncio

from .errors import (
    AuthenticationFailedError,
    BatchTranslationError,
    ChunkTranslationError,
    InvalidResponseError,
)
from .llm_client import ChatClient, system_message, user_message
from .models import FileChunk, TranslationSlice
from .prompt import PromptBuilder
from .text_utils import estimate_tokens
from .validator import FormatValidator

logger = logging.getLogger(__name__)


class Translator:
    """
    Dispatch chunks to the backend and turn answers into slices.

    The prompt builder (template + glossary) and client settings are shared
    read-only by every concurrent request.
    """

    def __init__(
        self,
        client: ChatClient,
        prompt_builder: PromptBuilder,
        validator: Optional[FormatValidator] = None,
        show_progress: bool = False,
    ):
        self.client = client
        self.prompt_builder = prompt_builder
        self.validator = validator or FormatValidator()
        self.show_progress = show_progress

    @property
    def concurrency(self) -> int:
        return self.client.settings.concurrency

    async def translate_chunk(
        self,
        chunk: FileChunk,
        source_lang: str,
        target_lang: str,
    ) -> TranslationSlice:
        """
        Translate one chunk.

        Raises:
            TranslateError: if the backend fails or answers with no text
        """
        source_text = chunk.content
        if not source_text.strip():
            return TranslationSlice.from_chunk(chunk, source_text)

        system_prompt = self.prompt_builder.build(source_lang, target_lang, source_text)

        messages = [
            system_message(system_prompt),
            user_message(source_text),
        ]

        logger.info(
            f"Sending translation request [{chunk.label}] with {len(source_text)} characters, "
            f"estimated {estimate_tokens(source_text)} tokens..."
        )
        result = await self.client.chat_completion(messages)

        if not result.content.strip():
            raise InvalidResponseError(f"Empty response for {chunk.label}")

        logger.info(
            f"Received translation response [{chunk.label}], tokens used: "
            f"{result.prompt_tokens} + {result.completion_tokens} = {result.total_tokens}"
        )
        if result.finish_reason == "length":
            logger.warning(f"Response for {chunk.label} was cut off by max_tokens")

        issues = self.validator.validate(source_text, result.content)
        for problem in issues:
            logger.warning(f"Found issue in {chunk.label}: {problem}")

        return TranslationSlice.from_chunk(chunk, result.content, issues)

    async def _guarded(
        self,
        chunk: FileChunk,
        source_lang: str,
        target_lang: str,
        sem: asyncio.Semaphore,
    ) -> Union[TranslationSlice, ChunkTranslationError]:
        """Run one chunk under the semaphore, returning its failure instead of raising."""
        async with sem:
            try:
                return await self.translate_chunk(chunk, source_lang, target_lang)
            except Exception as e:
                logger.error(f"Translation failed for {chunk.label}: {e}")
                return ChunkTranslationError(chunk, e)

    async def translate_batch(
        self,
        chunks: Sequence[FileChunk],
        source_lang: str,
        target_lang: str,
    ) -> List[TranslationSlice]:
        """
        Translate chunks concurrently, at most ``concurrency`` in flight.

        Every chunk runs to completion even if a sibling fails.

        Returns:
            Slices in the same order as ``chunks``

        Raises:
            AuthenticationFailedError: if any chunk hit an authentication failure
            BatchTranslationError: if any other chunk failed; lists every failure
        """
        if not chunks:
            return []

        sem = asyncio.Semaphore(self.concurrency)
        tasks = [
            self._guarded(chunk, source_lang, target_lang, sem)
            for chunk in chunks
        ]

        outcomes = await tqdm_asyncio.gather(
            *tasks,
            desc=f"{chunks[0].target_filename} -> {target_lang}",
            disable=not self.show_progress,
            leave=False,
        )

        failures = [o for o in outcomes if isinstance(o, ChunkTranslationError)]
        if failures:
            for failure in failures:
                if isinstance(failure.cause, AuthenticationFailedError):
                    raise failure.cause
            raise BatchTranslationError(failures)

        return list(outcomes)
