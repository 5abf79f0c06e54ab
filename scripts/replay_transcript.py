#!/usr/bin/env python3
"""
Replay a transcript file through a listening session, offline.

Each non-empty line is pushed as a final recognizer result. A blank line
stands for a pause long enough to flush the buffer. The backlog is read
from the database, but nothing is written back.

Usage:
    python scripts/replay_transcript.py transcript.txt [--ai]
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from discovery.core.logging import configure_logging

configure_logging()

from discovery.core.config import settings
from discovery.domain.models.session import RecognizerResult
from discovery.llm.client import get_matching_llm_client
from discovery.persistence.repositories.question_repo import QuestionRepository
from discovery.persistence.repositories.user_repo import UserRepository
from discovery.services.ai_extraction_service import AIExtractionService
from discovery.services.answer_service import AnswerService
from discovery.services.listening_session import ListeningSessionController


async def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/replay_transcript.py <transcript.txt> [--ai]")
        sys.exit(1)

    lines = Path(sys.argv[1]).read_text(encoding="utf-8").splitlines()
    db_path = str(settings.database_path)

    answers = AnswerService()
    answers.set_backlog(await QuestionRepository(db_path).list_all())
    roster = await UserRepository(db_path).list_all()

    llm = get_matching_llm_client() if "--ai" in sys.argv[2:] else None
    controller = ListeningSessionController(answers, ai_service=AIExtractionService(llm))
    await controller.start_session()
    controller.state.roster = roster

    for line in lines + [""]:
        if line.strip():
            controller.on_recognizer_result(RecognizerResult(text=line))
            continue
        result = await controller.flush_now()
        if result is None:
            continue
        print(f"\n> {result.text}")
        if result.correction_applied:
            print(f"  correction -> {result.corrected_question_id}")
        if result.answered_question_id:
            print(f"  answered   -> {result.answered_question_id}")
        for suggestion in result.suggestions:
            print(f"  [{suggestion.type.value}/{suggestion.priority.value}] {suggestion.content}")

    session = await controller.stop_session()
    print(
        f"\nTranscripts: {session.transcript_count}  "
        f"Extractions: {session.extraction_count}  "
        f"Answered: {answers.answered_count()}/{len(answers.questions)}"
    )


if __name__ == "__main__":
    asyncio.run(main())
