"""
Tests for ListeningSessionController.

Covers debounce, serialized flushing, the correction scenario end to end,
stop semantics and the bounded session logs. The keyword fallback stands in
for the LLM throughout.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from discovery.core.config import BufferConfig, DiscoveryConfig
from discovery.core.exceptions import SessionAlreadyActiveError, SessionNotActiveError
from discovery.domain.models.extraction import SuggestionType
from discovery.domain.models.project import Project
from discovery.domain.models.question import AnswerSource
from discovery.domain.models.session import RecognizerResult, SessionStatus
from discovery.services.ai_extraction_service import AIExtractionResult, AIExtractionService
from discovery.services.answer_service import AnswerService
from discovery.services.listening_session import ListeningSessionController

TOOLS_TEXT = "usiamo un crm chiamato hubspot come tool principale"
CORRECTION_TEXT = "no aspetta, volevo dire 20 progetti"

# Long enough that timers never fire during a test that flushes by hand
MANUAL_FLUSH = DiscoveryConfig(buffer=BufferConfig(debounce_seconds=30))
FAST_DEBOUNCE = DiscoveryConfig(buffer=BufferConfig(debounce_seconds=0.05))


class GatedAI:
    """AI service whose first extraction blocks until the gate opens."""

    def __init__(self):
        self.gate = asyncio.Event()
        self.calls = []

    async def extract(self, text, questions, users):
        self.calls.append(text)
        if len(self.calls) == 1:
            await self.gate.wait()
        return AIExtractionResult(matched_question_id=None, extracted_answer=text)


@pytest.fixture
def answers(questions):
    svc = AnswerService()
    svc.set_backlog(questions)
    return svc


@pytest.fixture
def user_repo(roster):
    repo = Mock()
    repo.list_all = AsyncMock(return_value=roster)
    return repo


@pytest.fixture
def make_controller(answers, clock, user_repo):
    def _make(config=MANUAL_FLUSH, ai_service=None, **kwargs):
        return ListeningSessionController(
            answers,
            ai_service or AIExtractionService(None, fallback_confidence=0.5),
            user_repo=user_repo,
            config=config,
            clock=clock,
            **kwargs,
        )

    return _make


def say(controller, text, confidence=0.9):
    return controller.on_recognizer_result(RecognizerResult(text=text, confidence=confidence))


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, make_controller, roster):
        controller = make_controller()

        session = await controller.start_session(operator=roster[0])

        assert controller.is_listening
        assert controller.should_auto_restart
        assert controller.session_id == session.id
        assert session.started_by == "u-owner"
        assert controller.state.roster == roster

        say(controller, "Buongiorno a tutti")
        closed = await controller.stop_session()

        assert not controller.is_listening
        assert not controller.should_auto_restart
        assert controller.session_id is None
        assert closed.status == SessionStatus.COMPLETED
        assert closed.transcript_count == 1

    @pytest.mark.asyncio
    async def test_double_start_rejected(self, make_controller):
        controller = make_controller()
        await controller.start_session()

        with pytest.raises(SessionAlreadyActiveError):
            await controller.start_session()
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_stop_when_idle_rejected(self, make_controller):
        with pytest.raises(SessionNotActiveError):
            await make_controller().stop_session()

    @pytest.mark.asyncio
    async def test_start_clears_previous_logs(self, make_controller):
        controller = make_controller()
        await controller.start_session()
        say(controller, "Il TTD attuale è di 45 giorni")
        await controller.flush_now()
        await controller.stop_session()

        await controller.start_session()

        assert list(controller.state.transcripts) == []
        assert list(controller.state.extractions) == []
        assert controller.state.transcript_count == 0
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_project_id_recorded(self, make_controller):
        projects = Mock()
        projects.get_current = AsyncMock(return_value=Project(id="p1", name="Espansione"))
        controller = make_controller(project_service=projects)

        session = await controller.start_session()

        assert session.project_id == "p1"
        await controller.stop_session()


class TestRecognizerInput:
    @pytest.mark.asyncio
    async def test_ignored_while_idle(self, make_controller):
        controller = make_controller()

        assert say(controller, "qualcosa di importante") is None
        assert controller.buffered_text == ""
        assert not controller.flush_pending

    @pytest.mark.asyncio
    async def test_interim_and_blank_results_ignored(self, make_controller):
        controller = make_controller()
        await controller.start_session()

        interim = controller.on_recognizer_result(
            RecognizerResult(text="parziale", is_final=False)
        )
        blank = say(controller, "   ")

        assert interim is None
        assert blank is None
        assert controller.state.transcript_count == 0
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_confidence_in_percent(self, make_controller):
        controller = make_controller()
        await controller.start_session()

        entry = say(controller, "  ciao a tutti ", confidence=0.873)

        assert entry.text == "ciao a tutti"
        assert entry.confidence == 87
        assert controller.buffered_text == "ciao a tutti"
        await controller.stop_session()


class TestDebounce:
    @pytest.mark.asyncio
    async def test_quick_utterances_flush_once(self, make_controller):
        controller = make_controller(config=FAST_DEBOUNCE)
        controller._ingest = AsyncMock(return_value=None)
        await controller.start_session()

        say(controller, "usiamo un crm")
        say(controller, "chiamato hubspot")
        assert controller.flush_pending

        await asyncio.sleep(0.2)
        await controller.wait_for_flushes()

        controller._ingest.assert_awaited_once_with("usiamo un crm chiamato hubspot")
        assert not controller.flush_pending
        assert controller.buffered_text == ""
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_timer_flush_answers_question(self, make_controller, answers):
        controller = make_controller(config=FAST_DEBOUNCE)
        await controller.start_session()

        say(controller, TOOLS_TEXT)
        await asyncio.sleep(0.2)
        await controller.wait_for_flushes()

        assert answers.get_question("q-tools").answered
        await controller.stop_session()

    @pytest.mark.parametrize("text", ["ok", "sì sì", "   va bene "])
    @pytest.mark.asyncio
    async def test_short_chunk_discarded(self, make_controller, answers, text):
        controller = make_controller()
        await controller.start_session()
        say(controller, text)

        result = await controller.flush_now()

        assert result is None
        assert answers.history == []
        assert list(controller.state.suggestions) == []
        assert controller.buffered_text == ""
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_flush_with_empty_buffer(self, make_controller):
        controller = make_controller()
        await controller.start_session()

        assert await controller.flush_now() is None
        await controller.stop_session()


class TestCorrectionScenario:
    @pytest.mark.asyncio
    async def test_auto_answer_then_correction(self, make_controller, answers, clock, roster):
        controller = make_controller()
        await controller.start_session(operator=roster[0])

        say(controller, TOOLS_TEXT)
        first = await controller.flush_now()
        clock.advance(30_000)
        say(controller, CORRECTION_TEXT)
        second = await controller.flush_now()

        assert first.answered_question_id == "q-tools"
        assert second.correction_applied
        assert second.corrected_question_id == "q-tools"
        question = answers.get_question("q-tools")
        assert question.answer == "volevo dire 20 progetti"
        assert question.answered_by == "Giulia Ferri (STT - corretto)"
        assert [e.source for e in answers.history_for("q-tools")] == [
            AnswerSource.STT_CORRECTION,
            AnswerSource.STT,
        ]
        kinds = [s.type for s in controller.state.suggestions]
        assert kinds == [SuggestionType.CORRECTION, SuggestionType.AUTO_ANSWER]
        # Extraction still recorded for the corrected chunk
        assert controller.state.extraction_count == 1
        await controller.stop_session()

    @pytest.mark.parametrize("elapsed_ms,corrected", [(119_999, True), (120_000, False)])
    @pytest.mark.asyncio
    async def test_correction_window(self, make_controller, answers, clock, elapsed_ms, corrected):
        controller = make_controller()
        await controller.start_session()
        say(controller, TOOLS_TEXT)
        await controller.flush_now()

        clock.advance(elapsed_ms)
        say(controller, CORRECTION_TEXT)
        result = await controller.flush_now()

        assert result.correction_applied is corrected
        assert len(answers.history_for("q-tools")) == (2 if corrected else 1)
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_manual_answer_opens_window(self, make_controller, answers, roster):
        controller = make_controller()
        await controller.start_session(operator=roster[0])
        await answers.answer_manually("q-lead", "Dal sito web", roster[0], roster)
        controller.mark_answered("q-lead")

        say(controller, "anzi, dal sito e dalle fiere")
        result = await controller.flush_now()

        assert result.corrected_question_id == "q-lead"
        assert answers.get_question("q-lead").answer == "dal sito e dalle fiere"
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_reset_closes_window(self, make_controller, answers):
        controller = make_controller()
        await controller.start_session()
        say(controller, TOOLS_TEXT)
        await controller.flush_now()

        await answers.reset_answer("q-tools")
        controller.forget_answer("q-tools")
        say(controller, CORRECTION_TEXT)
        result = await controller.flush_now()

        assert not result.correction_applied
        assert not answers.get_question("q-tools").answered
        await controller.stop_session()


class TestSerialization:
    @pytest.mark.asyncio
    async def test_flushes_run_in_order(self, make_controller):
        ai = GatedAI()
        controller = make_controller(ai_service=ai)
        await controller.start_session()

        say(controller, "primo blocco di testo")
        first = asyncio.create_task(controller.flush_now())
        await asyncio.sleep(0.01)
        say(controller, "secondo blocco di testo")
        second = asyncio.create_task(controller.flush_now())
        await asyncio.sleep(0.01)

        # Second chunk waits for the first ingestion to finish
        assert ai.calls == ["primo blocco di testo"]

        ai.gate.set()
        results = await asyncio.gather(first, second)

        assert ai.calls == ["primo blocco di testo", "secondo blocco di testo"]
        assert [r.text for r in results] == ai.calls
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_stop_waits_for_in_flight_flush(self, make_controller):
        ai = GatedAI()
        controller = make_controller(config=FAST_DEBOUNCE, ai_service=ai)
        await controller.start_session()
        say(controller, "Il TTD attuale è di 45 giorni")
        await asyncio.sleep(0.2)
        assert ai.calls

        stopping = asyncio.create_task(controller.stop_session())
        await asyncio.sleep(0.01)

        assert not controller.is_listening
        assert not stopping.done()

        ai.gate.set()
        session = await stopping

        assert session.extraction_count == 1
        assert controller.state.extraction_count == 1

    @pytest.mark.asyncio
    async def test_stop_waits_for_manual_flush(self, make_controller):
        ai = GatedAI()
        extraction_repo = Mock()
        extraction_repo.save = AsyncMock(return_value="x1")
        session_repo = Mock()
        session_repo.create = AsyncMock()
        session_repo.close = AsyncMock()
        controller = make_controller(
            ai_service=ai, extraction_repo=extraction_repo, session_repo=session_repo
        )
        session = await controller.start_session()
        say(controller, "Il TTD attuale è di 45 giorni")

        flushing = asyncio.create_task(controller.flush_now())
        await asyncio.sleep(0.01)
        stopping = asyncio.create_task(controller.stop_session())
        await asyncio.sleep(0.01)

        assert not stopping.done()
        session_repo.close.assert_not_awaited()

        ai.gate.set()
        result = await flushing
        closed = await stopping

        assert result.extraction_count == 1
        extraction_repo.save.assert_awaited_once()
        assert extraction_repo.save.await_args.args[0] == session.id
        session_repo.close.assert_awaited_once_with(session.id, 1, 1)
        assert closed.extraction_count == 1

    @pytest.mark.asyncio
    async def test_stop_drops_pending_buffer(self, make_controller):
        controller = make_controller()
        controller._ingest = AsyncMock(return_value=None)
        await controller.start_session()
        say(controller, TOOLS_TEXT)
        assert controller.flush_pending

        await controller.stop_session()

        assert not controller.flush_pending
        assert controller.buffered_text == ""
        controller._ingest.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_chunk_keeps_session_alive(self, make_controller, answers):
        class FlakyAI(AIExtractionService):
            def __init__(self):
                super().__init__(None, fallback_confidence=0.5)
                self.failures = 1

            async def extract(self, text, questions, users):
                if self.failures:
                    self.failures -= 1
                    raise RuntimeError("unexpected")
                return await super().extract(text, questions, users)

        controller = make_controller(ai_service=FlakyAI())
        await controller.start_session()

        say(controller, "Abbiamo deciso di partire dal Brasile")
        assert await controller.flush_now() is None
        say(controller, TOOLS_TEXT)
        result = await controller.flush_now()

        assert controller.is_listening
        assert result.answered_question_id == "q-tools"
        await controller.stop_session()


class TestLogBounds:
    @pytest.mark.asyncio
    async def test_suggestions_newest_first_and_bounded(self, make_controller):
        controller = make_controller()
        await controller.start_session()

        for i in range(1, 13):
            say(controller, f"Abbiamo deciso il punto {i:02d}")
            await controller.flush_now()

        suggestions = list(controller.state.suggestions)
        assert len(suggestions) == 10
        assert "punto 12" in suggestions[0].content
        assert "punto 03" in suggestions[-1].content
        await controller.stop_session()

    @pytest.mark.asyncio
    async def test_transcript_log_keeps_latest(self, make_controller):
        controller = make_controller()
        await controller.start_session()

        for i in range(20):
            say(controller, f"frase numero {i}")

        transcripts = list(controller.state.transcripts)
        assert len(transcripts) == 15
        assert transcripts[-1].text == "frase numero 19"
        assert controller.state.transcript_count == 20
        await controller.stop_session()


class TestKpiPush:
    @pytest.mark.asyncio
    async def test_extraction_pushed_to_project(self, make_controller, roster):
        projects = Mock()
        projects.get_current = AsyncMock(return_value=None)
        projects.apply_extraction = AsyncMock(return_value=True)
        controller = make_controller(project_service=projects)
        await controller.start_session(operator=roster[1])

        say(controller, "Il TTD attuale è di 45 giorni")
        result = await controller.flush_now()

        assert result.kpi_fields_pushed == ["ttd_current"]
        extraction, operator = projects.apply_extraction.await_args.args
        assert extraction.value == "45"
        assert operator == roster[1]
        await controller.stop_session()
