"""
Generation Session
Drives one streaming request: feeds chunks to the decoder, publishes step
snapshots, and extracts the final project when the stream ends.

One session owns exactly one StreamState. It is discarded when the
stream ends, fails or is cancelled, and is never reused.

Usage:
    session = GenerationSession(project.files, on_steps=renderer.update)
    generated = await session.generate(source, prompt)
    project = apply_generated(project, generated)
"""

import time
from dataclasses import replace
from typing import AsyncIterator, Callable, Iterable, List, Optional, Union

import anthropic
import httpx

from aether.core.exceptions import (
    AetherError,
    AIRateLimitError,
    AIServiceError,
    GenerationCancelledError,
)
from aether.core.logging_config import generate_session_id, logger, set_session_id
from aether.modules.generation.extractor import extract, extract_build_plan
from aether.modules.generation.models import (
    GeneratedFile,
    GeneratedProject,
    GenerationStep,
    ProjectFileCollection,
    StreamState,
)
from aether.modules.generation.stream_decoder import ingest, snapshot

StepCallback = Callable[[List[GenerationStep]], None]
BuildPlanCallback = Callable[[str], None]

BUILD_PLAN_CLOSE = '</build_plan>'

RATE_LIMIT_MESSAGE = (
    "You have exceeded the API rate limit (429). "
    "Please try again in a minute or check your API key quota."
)
GENERIC_FAILURE_MESSAGE = (
    "I encountered an issue connecting to the generation service. "
    "Please ensure your API key is valid."
)


def _retry_after(headers) -> Optional[int]:
    value = headers.get("retry-after") if headers is not None else None
    try:
        return int(float(value)) if value else None
    except ValueError:
        return None


def _looks_rate_limited(message: str) -> bool:
    lowered = message.lower()
    return '429' in lowered or 'quota' in lowered or 'rate limit' in lowered


def classify_transport_error(error: BaseException) -> Optional[AIServiceError]:
    """
    Map a provider or network failure to an AIServiceError.

    Rate limits (HTTP 429, quota messages) become AIRateLimitError.
    Returns None for errors that are not transport failures.
    """
    if isinstance(error, AIServiceError):
        return error

    if isinstance(error, anthropic.RateLimitError):
        return AIRateLimitError(retry_after=_retry_after(error.response.headers))

    if isinstance(error, anthropic.APIStatusError):
        if error.status_code == 429:
            return AIRateLimitError(retry_after=_retry_after(error.response.headers))
        if _looks_rate_limited(str(error)):
            return AIRateLimitError()
        return AIServiceError(str(error), status_code=error.status_code)

    if isinstance(error, httpx.HTTPStatusError):
        if error.response.status_code == 429:
            return AIRateLimitError(retry_after=_retry_after(error.response.headers))
        return AIServiceError(str(error), status_code=error.response.status_code)

    if isinstance(error, (anthropic.APIError, httpx.HTTPError, ConnectionError, TimeoutError)):
        if _looks_rate_limited(str(error)):
            return AIRateLimitError()
        return AIServiceError(str(error) or type(error).__name__)

    return None


def describe_failure(error: BaseException) -> str:
    """User-facing message for a failed generation"""
    if isinstance(error, AIRateLimitError):
        return RATE_LIMIT_MESSAGE
    return GENERIC_FAILURE_MESSAGE


class GenerationSession:
    """
    Controller for a single generation request.

    The existing file names are captured once, at construction, and fixed
    for the whole session: a step's "Creating"/"Updating" label never
    changes even if the project changes underneath.
    """

    def __init__(
        self,
        existing_files: Union[ProjectFileCollection, Iterable[GeneratedFile]] = (),
        on_steps: Optional[StepCallback] = None,
        on_build_plan: Optional[BuildPlanCallback] = None,
        session_id: Optional[str] = None,
    ):
        if isinstance(existing_files, dict):
            self.existing_files = list(existing_files.values())
        else:
            self.existing_files = list(existing_files)
        self.on_steps = on_steps
        self.on_build_plan = on_build_plan
        self.session_id = session_id or generate_session_id()

        self._state: Optional[StreamState] = StreamState.start(f.name for f in self.existing_files)
        self._steps: List[GenerationStep] = []
        self._build_plan_sent = False
        self._cancelled = False
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    @property
    def steps(self) -> List[GenerationStep]:
        """Last published step snapshot (kept after the state is discarded)"""
        return list(self._steps)

    @property
    def is_active(self) -> bool:
        return self._state is not None

    @property
    def elapsed_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        return (self._finished_at or time.monotonic()) - self._started_at

    def cancel(self) -> None:
        """Abandon the session; the running stream stops at the next chunk"""
        if self._state is not None:
            logger.log_generation_event("cancelled", session_id=self.session_id)
        self._cancelled = True
        self._state = None

    def _publish(self, state: StreamState) -> None:
        self._steps = snapshot(state)
        if self.on_steps:
            self.on_steps(list(self._steps))

    def _maybe_send_build_plan(self, state: StreamState, chunk: str) -> None:
        if self._build_plan_sent or not self.on_build_plan:
            return
        tail = state.buffer[-(len(chunk) + len(BUILD_PLAN_CLOSE)):]
        if BUILD_PLAN_CLOSE not in tail:
            return
        build_plan = extract_build_plan(state.buffer)
        if build_plan:
            self._build_plan_sent = True
            self.on_build_plan(build_plan)

    async def run(self, chunks: AsyncIterator[str]) -> GeneratedProject:
        """
        Consume a chunk stream to the end and return the extracted project.

        Raises:
            AIRateLimitError / AIServiceError: the stream failed
            GenerationCancelledError: ``cancel()`` was called
        """
        if self._state is None:
            raise GenerationCancelledError(self.session_id)

        set_session_id(self.session_id)
        self._started_at = time.monotonic()
        logger.log_generation_event(
            "started",
            session_id=self.session_id,
            existing_files=len(self.existing_files),
        )

        try:
            async for chunk in chunks:
                if self._state is None:
                    break
                self._state = ingest(self._state, chunk)
                self._publish(self._state)
                self._maybe_send_build_plan(self._state, chunk)
        except Exception as e:
            self._state = None
            self._finished_at = time.monotonic()
            if isinstance(e, AetherError) and not isinstance(e, AIServiceError):
                raise
            classified = classify_transport_error(e)
            if classified is None:
                logger.log_error_with_context(e, context="generation stream", session_id=self.session_id)
                raise
            logger.log_generation_event(
                "failed",
                session_id=self.session_id,
                error_code=classified.code,
            )
            raise classified from e
        finally:
            if self._cancelled:
                aclose = getattr(chunks, "aclose", None)
                if aclose is not None:
                    await aclose()

        if self._state is None:
            self._finished_at = time.monotonic()
            raise GenerationCancelledError(self.session_id)

        state, self._state = self._state, None
        self._finished_at = time.monotonic()

        extract_started = time.monotonic()
        project = extract(state.buffer)
        logger.log_performance(
            "extract",
            (time.monotonic() - extract_started) * 1000,
            threshold_ms=250,
            buffer_size=len(state.buffer),
        )
        logger.log_generation_event(
            "completed",
            session_id=self.session_id,
            files=len(project.files),
            incomplete=len(project.incomplete_files),
            seconds=round(self.elapsed_seconds, 1),
        )
        return project

    async def generate(self, source, prompt: str) -> GeneratedProject:
        """Stream ``prompt`` from a source and attach its token count"""
        project = await self.run(source.stream(prompt, self.existing_files))
        token_count = getattr(source, "token_count", None)
        if token_count is not None:
            project = replace(project, token_count=token_count)
        return project
