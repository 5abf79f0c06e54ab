"""
Listening session API routes.

Endpoints for starting and stopping a session, pushing recognizer events,
and reading the live logs and the end-of-call report.
"""

from fastapi import APIRouter, status
import structlog

from discovery.api.dependencies import (
    ControllerDep,
    ReportServiceDep,
    SessionRepoDep,
    UserRepoDep,
)
from discovery.api.schemas import (
    FlushResponse,
    IngestionResultSchema,
    RecognizerEventRequest,
    RecognizerEventResponse,
    SessionLogsResponse,
    SessionStatusResponse,
    StartSessionRequest,
    UtteranceRequest,
    UtteranceResponse,
)
from discovery.core.exceptions import (
    SessionNotActiveError,
    SessionNotFoundError,
    UserNotFoundError,
)
from discovery.domain.models.report import SessionReport
from discovery.domain.models.session import ListeningSession, RecognizerResult
from discovery.persistence.repositories.listening_session_repo import (
    ListeningSessionRepository,
)
from discovery.services.listening_session import ListeningSessionController
from discovery.services.recognizer import should_restart

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


# ============ HELPERS ============


def _status_response(
    session: ListeningSession, controller: ListeningSessionController
) -> SessionStatusResponse:
    is_current = controller.session_id == session.id
    return SessionStatusResponse(
        **session.model_dump(),
        is_listening=is_current and controller.is_listening,
        should_auto_restart=is_current and controller.should_auto_restart,
        buffered_chars=len(controller.buffered_text) if is_current else 0,
        flush_pending=is_current and controller.flush_pending,
    )


async def _require_listening(
    session_id: str,
    controller: ListeningSessionController,
    session_repo: ListeningSessionRepository,
) -> None:
    """Raise unless session_id is the session currently listening."""
    if controller.is_listening and controller.session_id == session_id:
        return
    known = (
        controller.session is not None and controller.session.id == session_id
    ) or await session_repo.get(session_id) is not None
    if known:
        raise SessionNotActiveError(f"Session {session_id} is not listening")
    raise SessionNotFoundError(f"Session {session_id} not found")


def _require_current(session_id: str, controller: ListeningSessionController) -> None:
    """Raise unless session_id is the current or most recent session."""
    if controller.session is None or controller.session.id != session_id:
        raise SessionNotFoundError(f"Session {session_id} has no live data")


# ============ LIFECYCLE ============


@router.post(
    "",
    response_model=SessionStatusResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_session(
    request: StartSessionRequest,
    controller: ControllerDep,
    user_repo: UserRepoDep,
):
    """Start listening. Only one session can listen at a time."""
    operator = None
    if request.user_id:
        operator = await user_repo.get(request.user_id)
        if operator is None:
            raise UserNotFoundError(f"User {request.user_id} not found")

    session = await controller.start_session(operator)
    return _status_response(session, controller)


@router.post("/{session_id}/stop", response_model=SessionStatusResponse)
async def stop_session(
    session_id: str,
    controller: ControllerDep,
    session_repo: SessionRepoDep,
):
    """Stop listening; in-flight chunks finish before the record is closed."""
    await _require_listening(session_id, controller, session_repo)
    session = await controller.stop_session()
    return _status_response(session, controller)


@router.get("/{session_id}", response_model=SessionStatusResponse)
async def get_session(
    session_id: str,
    controller: ControllerDep,
    session_repo: SessionRepoDep,
):
    if controller.session is not None and controller.session.id == session_id:
        return _status_response(controller.session, controller)
    session = await session_repo.get(session_id)
    if session is None:
        raise SessionNotFoundError(f"Session {session_id} not found")
    return _status_response(session, controller)


# ============ RECOGNIZER INPUT ============


@router.post("/{session_id}/utterances", response_model=UtteranceResponse)
async def push_utterance(
    session_id: str,
    request: UtteranceRequest,
    controller: ControllerDep,
    session_repo: SessionRepoDep,
):
    """Push a recognizer result. Final results are buffered and debounced."""
    await _require_listening(session_id, controller, session_repo)
    entry = controller.on_recognizer_result(
        RecognizerResult(
            text=request.text,
            is_final=request.is_final,
            confidence=request.confidence,
        )
    )
    return UtteranceResponse(accepted=entry is not None, entry=entry)


@router.post(
    "/{session_id}/recognizer-events", response_model=RecognizerEventResponse
)
async def recognizer_event(
    session_id: str,
    request: RecognizerEventRequest,
    controller: ControllerDep,
):
    """Tell the client whether to restart its recognizer after an error or end."""
    listening = controller.session_id == session_id and controller.should_auto_restart
    restart = should_restart(request.event, request.error_code, listening)
    log.info(
        "recognizer_event",
        session_id=session_id,
        recognizer_event=request.event,
        error_code=request.error_code,
        restart=restart,
    )
    return RecognizerEventResponse(
        restart=restart,
        delay_seconds=controller.config.recognizer.restart_delay_seconds
        if restart
        else 0.0,
    )


@router.post("/{session_id}/flush", response_model=FlushResponse)
async def flush_session(
    session_id: str,
    controller: ControllerDep,
    session_repo: SessionRepoDep,
):
    """Flush the buffer now instead of waiting for the idle timer."""
    await _require_listening(session_id, controller, session_repo)
    result = await controller.flush_now()
    if result is None:
        return FlushResponse(flushed=False)
    return FlushResponse(
        flushed=True,
        result=IngestionResultSchema(
            correction_applied=result.correction_applied,
            answered_question_id=result.answered_question_id,
            corrected_question_id=result.corrected_question_id,
            extraction_count=result.extraction_count,
            uncertainty_count=result.uncertainty_count,
            suggestions=result.suggestions,
            kpi_fields_pushed=result.kpi_fields_pushed,
            latency_ms=result.latency_ms,
        ),
    )


# ============ OUTPUT ============


@router.get("/{session_id}/logs", response_model=SessionLogsResponse)
async def get_session_logs(session_id: str, controller: ControllerDep):
    _require_current(session_id, controller)
    state = controller.state
    return SessionLogsResponse(
        session_id=session_id,
        transcripts=list(state.transcripts),
        extractions=list(state.extractions),
        uncertainties=list(state.uncertainties),
        suggestions=list(state.suggestions),
    )


@router.get("/{session_id}/report", response_model=SessionReport)
async def get_session_report(
    session_id: str,
    controller: ControllerDep,
    report_service: ReportServiceDep,
):
    """Build the end-of-call report for the current or most recent session."""
    _require_current(session_id, controller)
    state = controller.state
    return await report_service.build_session_report(
        session_id=session_id,
        extractions=list(state.extractions),
        suggestions=list(state.suggestions),
        uncertainties=list(state.uncertainties),
        questions=controller.answers.questions,
        transcript_count=state.transcript_count,
    )
