"""Streaming JSON translation over an OpenAI-compatible chat-completion endpoint."""

import asyncio
import enum
import inspect
import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from config.logging_config import get_logger
from config.settings import TranslatorConfig
from translator.errors import (
    InvalidResultFormatError,
    StreamUnsupportedError,
    error_for_status,
)
from translator.prompts import build_messages
from translator.sse_decoder import EventStreamDecoder

logger = get_logger(__name__)

ProgressCallback = Callable[[int], Union[None, Awaitable[None]]]
ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]

TEMPERATURE = 0.3

_FENCE_OPEN = re.compile(r"```(?:json)?[ \t]*\r?\n")
_FENCE_CLOSE = re.compile(r"```\s*\Z")


class TranslationState(str, enum.Enum):
    """Lifecycle of a single translate() call."""

    IDLE = "idle"
    REQUEST_SENT = "request_sent"
    STREAMING = "streaming"
    VALIDATING = "validating"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class TranslationRequest:
    source_text: str
    target_language: str
    cancel_event: Optional[asyncio.Event] = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass
class _Call:
    """Mutable state owned by one in-flight call."""

    request: TranslationRequest
    on_progress: Optional[ProgressCallback] = None
    on_chunk: Optional[ChunkCallback] = None
    buffer: str = ""
    state: TranslationState = TranslationState.IDLE
    estimated_tokens: float = field(init=False)

    def __post_init__(self):
        self.estimated_tokens = len(self.request.source_text) / 4

    def move_to(self, state: TranslationState) -> None:
        logger.debug(f"Translation state: {self.state.value} -> {state.value}")
        self.state = state


def clean_json_string(text: str) -> str:
    """Strip markdown code fences and surrounding whitespace."""
    text = _FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text.strip())
    return text.strip()


def _reject_constant(name: str):
    raise ValueError(f"Unexpected token {name} in JSON")


def parse_json_strict(text: str) -> Any:
    """json.loads without the NaN/Infinity extensions."""
    return json.loads(text, parse_constant=_reject_constant)


def dump_json(value: Any) -> str:
    """Two-space indented JSON, non-ASCII kept unless it cannot be encoded as UTF-8."""
    result = json.dumps(value, indent=2, ensure_ascii=False, allow_nan=False)
    try:
        result.encode("utf-8")
    except UnicodeEncodeError:
        # lone surrogates can only be written as \u escapes
        result = json.dumps(value, indent=2, allow_nan=False)
    return result


def estimate_progress(accumulated_chars: int, source_chars: int) -> int:
    """Best-effort completion percentage, four characters counted as one token."""
    estimated_tokens = source_chars / 4
    if estimated_tokens <= 0:
        return 100
    ratio = (accumulated_chars / 4) / estimated_tokens
    return min(math.floor(ratio * 100 + 0.5), 100)


async def _notify(callback: Optional[Callable[[Any], Any]], value: Any) -> None:
    if callback is None:
        return
    result = callback(value)
    if inspect.isawaitable(result):
        await result


def _preview(text: str, size: int = 100) -> str:
    return text[:size] + "..." if len(text) > size else text


class JsonStreamTranslator:
    """Translates the values of a JSON document while streaming the model output."""

    def __init__(
        self,
        config: Optional[TranslatorConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or TranslatorConfig.from_settings()
        self.http_client = http_client

    def build_payload(self, source_text: str, target_language: str) -> dict:
        return {
            "model": self.config.model,
            "messages": build_messages(source_text, target_language),
            "temperature": TEMPERATURE,
            "stream": True,
        }

    def build_headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    async def translate(
        self,
        source_text: str,
        target_language: str,
        cancel_event: Optional[asyncio.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> str:
        """
        Translate a JSON document into target_language.

        Args:
            source_text: serialized JSON whose values are translated
            target_language: language name or code used in the prompt
            cancel_event: cooperative cancellation token
            on_progress: called with an integer percentage after each fragment
            on_chunk: called with the cumulative output after each fragment

        Returns:
            The translated JSON re-indented with two spaces, or "" when the
            call was cancelled.
        """
        if not source_text or not source_text.strip():
            raise ValueError("source_text must be a non-empty JSON document")

        call = _Call(
            TranslationRequest(source_text, target_language, cancel_event),
            on_progress=on_progress,
            on_chunk=on_chunk,
        )
        if call.request.cancelled:
            logger.info("Translation cancelled before the request was sent")
            call.move_to(TranslationState.CANCELLED)
            return ""

        logger.info(
            f"Translation request: target={target_language}, "
            f"input_length={len(source_text)}, input_preview={_preview(source_text)!r}"
        )
        try:
            finished = await self._run_cancellable(self._stream(call), cancel_event)
            if not finished:
                logger.info("Translation cancelled while streaming")
                call.move_to(TranslationState.CANCELLED)
                return ""
            return self._finalize(call)
        except Exception as e:
            if call.request.cancelled:
                logger.info(f"Translation cancelled ({type(e).__name__}: {e})")
                call.move_to(TranslationState.CANCELLED)
                return ""
            logger.error(f"Translation error: {type(e).__name__}: {e}")
            call.move_to(TranslationState.FAILED)
            raise

    async def _run_cancellable(
        self, work: Awaitable[None], cancel_event: Optional[asyncio.Event]
    ) -> bool:
        """Run work until it finishes (True) or the cancel event fires (False)."""
        if cancel_event is None:
            await work
            return True

        work_task = asyncio.ensure_future(work)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {work_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work_task.cancel()
            cancel_task.cancel()
            raise

        if work_task in done:
            cancel_task.cancel()
            work_task.result()
            return True

        work_task.cancel()
        await asyncio.gather(work_task, return_exceptions=True)
        return False

    async def _stream(self, call: _Call) -> None:
        if self.http_client is not None:
            await self._stream_with(self.http_client, call)
            return
        async with httpx.AsyncClient(timeout=self.config.request_timeout) as client:
            await self._stream_with(client, call)

    async def _stream_with(self, client: httpx.AsyncClient, call: _Call) -> None:
        request = call.request
        payload = self.build_payload(request.source_text, request.target_language)
        call.move_to(TranslationState.REQUEST_SENT)
        async with client.stream(
            "POST", self.config.api_url, json=payload, headers=self.build_headers()
        ) as response:
            logger.info(
                f"API response status: {response.status_code} {response.reason_phrase}"
            )
            logger.debug(f"API response headers: {dict(response.headers)}")
            if not response.is_success:
                raise error_for_status(response.status_code)

            call.move_to(TranslationState.STREAMING)
            decoder = EventStreamDecoder()
            try:
                async for fragment in response.aiter_bytes():
                    content = decoder.feed(fragment)
                    logger.debug(
                        f"Stream chunk: bytes={len(fragment)}, "
                        f"content_preview={_preview(content)!r}"
                    )
                    await self._append(call, content)
            except (httpx.StreamConsumed, httpx.StreamClosed) as e:
                raise StreamUnsupportedError() from e

            tail = decoder.flush()
            if tail:
                await self._append(call, tail)

    async def _append(self, call: _Call, content: str) -> None:
        call.buffer += content
        progress = estimate_progress(len(call.buffer), len(call.request.source_text))
        logger.debug(
            f"Translation progress: {progress}% "
            f"(content_length={len(call.buffer)}, estimated_tokens={call.estimated_tokens})"
        )
        await _notify(call.on_progress, progress)
        await _notify(call.on_chunk, call.buffer)

    def _finalize(self, call: _Call) -> str:
        call.move_to(TranslationState.VALIDATING)
        cleaned = clean_json_string(call.buffer)
        logger.debug(f"Cleaned content: {_preview(cleaned)!r}")
        try:
            result = dump_json(parse_json_strict(cleaned))
        except ValueError as e:
            if call.request.cancelled:
                logger.info("Translation cancelled before the result was complete")
                call.move_to(TranslationState.CANCELLED)
                return ""
            logger.error(f"JSON parse error: {e}")
            raise InvalidResultFormatError(str(e)) from e

        call.move_to(TranslationState.COMPLETED)
        logger.info(
            f"Translation completed: output_length={len(result)}, "
            f"output_preview={_preview(result)!r}"
        )
        return result
