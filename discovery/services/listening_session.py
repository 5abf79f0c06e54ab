"""
Live listening session controller.

State machine: Idle -> Listening -> Idle. While listening, finalized
utterances accumulate in a buffer; each one cancels and re-arms an idle
timer (debounce). When the timer fires the buffer is snapshotted, cleared,
and the chunk is sent through the ingestion pipeline.

Concurrency model (single event loop):
- Buffer appends and the timer callback run synchronously on the loop, so
  a flush always sees a stable snapshot and utterance order is preserved.
- Ingestion runs in a task per chunk, serialized by an asyncio.Lock whose
  waiters are woken in FIFO order. New utterances keep buffering while an
  ingestion is awaiting the LLM.
- stop_session cancels the pending timer, drops the unflushed buffer, and
  waits for in-flight ingestions before closing the session record.
"""

import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set

import structlog

from discovery.core.config import DiscoveryConfig, discovery_config
from discovery.core.exceptions import SessionAlreadyActiveError, SessionNotActiveError
from discovery.core.logging import bind_context
from discovery.domain.models.session import (
    LastAnswered,
    ListeningSession,
    RecognizerResult,
    SessionStatus,
    TranscriptEntry,
)
from discovery.domain.models.user import User
from discovery.persistence.repositories.extraction_repo import ExtractionRepository
from discovery.persistence.repositories.listening_session_repo import (
    ListeningSessionRepository,
)
from discovery.persistence.repositories.user_repo import UserRepository
from discovery.services.ai_extraction_service import AIExtractionService
from discovery.services.answer_service import AnswerService, write_to_store
from discovery.services.ingestion_pipeline import (
    IngestionContext,
    IngestionPipeline,
    IngestionResult,
)
from discovery.services.ingestion_pipeline.stages import (
    AnalysisStage,
    AnswerMatchingStage,
    CorrectionStage,
    ExtractionPersistenceStage,
    SessionLogStage,
)
from discovery.services.project_service import ProjectService
from discovery.services.session_state import SessionState

log = structlog.get_logger(__name__)


def wall_clock_ms() -> float:
    return time.time() * 1000


class ListeningSessionController:
    """Owns one listening session at a time and its ingestion pipeline."""

    def __init__(
        self,
        answer_service: AnswerService,
        ai_service: Optional[AIExtractionService] = None,
        session_repo: Optional[ListeningSessionRepository] = None,
        extraction_repo: Optional[ExtractionRepository] = None,
        user_repo: Optional[UserRepository] = None,
        project_service: Optional[ProjectService] = None,
        config: Optional[DiscoveryConfig] = None,
        clock: Callable[[], float] = wall_clock_ms,
    ):
        """
        Initialize controller.

        Args:
            answer_service: Backlog owner (questions + history)
            ai_service: Question-matching adapter (keyword-only if None)
            session_repo: Store for session records (None keeps sessions in memory)
            extraction_repo: Store for extractions
            user_repo: Roster source, reloaded at each session start
            project_service: KPI push target
            config: Pipeline configuration (defaults to discovery_config)
            clock: Millisecond clock used for the correction window
        """
        self.config = config or discovery_config
        self.answers = answer_service
        self.ai = ai_service or AIExtractionService(
            fallback_confidence=self.config.matching.fallback_confidence
        )
        self.session_repo = session_repo
        self.user_repo = user_repo
        self.projects = project_service
        self.clock = clock

        self.state = SessionState(limits=self.config.logs)
        self.session: Optional[ListeningSession] = None

        self._buffer: List[str] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._flush_lock = asyncio.Lock()
        self._flush_tasks: Set[asyncio.Task] = set()

        self.pipeline = IngestionPipeline(
            [
                AnalysisStage(),
                CorrectionStage(answer_service, window_ms=self.config.correction.window_ms),
                AnswerMatchingStage(
                    self.ai,
                    answer_service,
                    auto_answer_threshold=self.config.matching.auto_answer_threshold,
                ),
                ExtractionPersistenceStage(extraction_repo, project_service),
                SessionLogStage(),
            ]
        )

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    @property
    def is_listening(self) -> bool:
        return self.state.listening

    @property
    def should_auto_restart(self) -> bool:
        """Polled by the recognizer boundary before restarting the recognizer."""
        return self.state.listening

    @property
    def session_id(self) -> Optional[str]:
        return self.state.session_id

    @property
    def buffered_text(self) -> str:
        return " ".join(self._buffer)

    @property
    def flush_pending(self) -> bool:
        return self._timer is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_session(self, operator: Optional[User] = None) -> ListeningSession:
        """
        Clear the session logs, open a session record and start listening.

        Raises:
            SessionAlreadyActiveError: A session is already listening
        """
        if self.state.listening:
            raise SessionAlreadyActiveError(
                f"Session {self.state.session_id} is already listening"
            )

        self.state.reset_logs()
        self._buffer.clear()
        self.state.operator = operator
        if self.user_repo is not None:
            self.state.roster = await self.user_repo.list_all()

        project_id = None
        if self.projects is not None:
            project = await self.projects.get_current()
            project_id = project.id if project else None

        session = ListeningSession(
            id=str(uuid.uuid4()),
            project_id=project_id,
            started_by=operator.id if operator else None,
        )
        if self.session_repo is not None:
            await write_to_store(
                self.session_repo.create(session), "stt_sessions", session_id=session.id
            )

        self.session = session
        self.state.session_id = session.id
        self.state.listening = True

        log.info(
            "session_started",
            session_id=session.id,
            operator=operator.id if operator else None,
            roster_size=len(self.state.roster),
        )
        return session

    async def stop_session(self) -> ListeningSession:
        """
        Stop listening and close the session record.

        In-flight ingestions finish and persist first; text still waiting
        in the buffer is dropped.

        Raises:
            SessionNotActiveError: No session is listening
        """
        if not self.state.listening or self.session is None:
            raise SessionNotActiveError("No listening session to stop")

        self.state.listening = False
        self._cancel_timer()
        if self._buffer:
            log.info("buffer_discarded", chars=len(self.buffered_text))
            self._buffer.clear()

        if self._flush_tasks:
            await asyncio.gather(*list(self._flush_tasks), return_exceptions=True)

        session = self.session.model_copy(
            update={
                "status": SessionStatus.COMPLETED,
                "transcript_count": self.state.transcript_count,
                "extraction_count": self.state.extraction_count,
            }
        )
        if self.session_repo is not None:
            await write_to_store(
                self.session_repo.close(
                    session.id, session.transcript_count, session.extraction_count
                ),
                "stt_sessions",
                session_id=session.id,
            )

        log.info(
            "session_stopped",
            session_id=session.id,
            transcript_count=session.transcript_count,
            extraction_count=session.extraction_count,
        )

        self.session = session
        self.state.session_id = None
        return session

    # ------------------------------------------------------------------
    # Recognizer input
    # ------------------------------------------------------------------

    def on_recognizer_result(self, result: RecognizerResult) -> Optional[TranscriptEntry]:
        """
        Accept a recognizer push event.

        Must be called from the event loop. Interim results and results
        received while idle are ignored.

        Returns:
            The transcript entry appended, or None if the result was ignored
        """
        if not result.is_final or not self.state.listening:
            return None
        text = result.text.strip()
        if not text:
            return None

        entry = TranscriptEntry(
            text=text,
            time=datetime.now(timezone.utc),
            confidence=round(result.confidence * 100),
        )
        self.state.transcripts.append(entry)
        self.state.transcript_count += 1
        self._buffer.append(text)
        self._arm_timer()
        return entry

    def mark_answered(self, question_id: str) -> None:
        """Point the correction window at a question answered outside the pipeline."""
        if self.state.listening:
            self.state.last_answered = LastAnswered(
                question_id=question_id, timestamp_ms=self.clock()
            )

    def forget_answer(self, question_id: str) -> None:
        """Clear the correction pointer if it targets question_id."""
        pointer = self.state.last_answered
        if pointer is not None and pointer.question_id == question_id:
            self.state.last_answered = None

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    async def flush_now(self) -> Optional[IngestionResult]:
        """Flush the buffer immediately and wait for its ingestion."""
        self._cancel_timer()
        chunk = self._take_buffer()
        if chunk is None:
            return None
        return await self._spawn_ingest(chunk)

    async def wait_for_flushes(self) -> None:
        if self._flush_tasks:
            await asyncio.gather(*list(self._flush_tasks), return_exceptions=True)

    def _arm_timer(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.config.buffer.debounce_seconds, self._on_idle)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_idle(self) -> None:
        self._timer = None
        chunk = self._take_buffer()
        if chunk is None:
            return
        self._spawn_ingest(chunk)

    def _spawn_ingest(self, chunk: str) -> "asyncio.Task[Optional[IngestionResult]]":
        """Run an ingestion as a task tracked by stop_session."""
        task = asyncio.get_running_loop().create_task(self._ingest(chunk))
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)
        return task

    def _take_buffer(self) -> Optional[str]:
        chunk = " ".join(self._buffer).strip()
        self._buffer.clear()
        if len(chunk) < self.config.buffer.min_chunk_chars:
            if chunk:
                log.debug("chunk_discarded", reason="too_short", chars=len(chunk))
            return None
        return chunk

    async def _ingest(self, chunk: str) -> Optional[IngestionResult]:
        async with self._flush_lock:
            bind_context(session_id=self.state.session_id)
            log.info("chunk_flushed", session_id=self.state.session_id, chars=len(chunk))
            context = IngestionContext(text=chunk, now_ms=self.clock(), session=self.state)
            try:
                return await self.pipeline.execute(context)
            except Exception as e:
                # The chunk is lost, the session keeps listening
                log.error(
                    "chunk_ingestion_failed",
                    session_id=self.state.session_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                return None
