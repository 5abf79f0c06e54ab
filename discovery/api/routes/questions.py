"""
Discovery question API routes.

Manual answering, answer reset and answer history for the backlog.
"""

from fastapi import APIRouter
import structlog

from discovery.api.dependencies import AnswerServiceDep, ControllerDep, UserRepoDep
from discovery.api.schemas import (
    AnswerHistoryResponse,
    AnswerRequest,
    QuestionListResponse,
)
from discovery.core.exceptions import UserNotFoundError
from discovery.domain.models.question import Question

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/questions", tags=["questions"])


@router.get("", response_model=QuestionListResponse)
async def list_questions(answers: AnswerServiceDep):
    return QuestionListResponse(
        questions=answers.questions,
        answered_count=answers.answered_count(),
        total=len(answers.questions),
    )


@router.put("/{question_id}/answer", response_model=Question)
async def answer_question(
    question_id: str,
    request: AnswerRequest,
    answers: AnswerServiceDep,
    controller: ControllerDep,
    user_repo: UserRepoDep,
):
    """Record a typed answer; it also opens the correction window while listening."""
    operator = await user_repo.get(request.user_id)
    if operator is None:
        raise UserNotFoundError(f"User {request.user_id} not found")

    question = await answers.answer_manually(
        question_id, request.answer, operator, roster=await user_repo.list_all()
    )
    controller.mark_answered(question_id)
    return question


@router.delete("/{question_id}/answer", response_model=Question)
async def reset_answer(
    question_id: str,
    answers: AnswerServiceDep,
    controller: ControllerDep,
):
    question = await answers.reset_answer(question_id)
    controller.forget_answer(question_id)
    return question


@router.get("/{question_id}/history", response_model=AnswerHistoryResponse)
async def get_answer_history(question_id: str, answers: AnswerServiceDep):
    """Answer timeline of one question, newest first."""
    answers.get_question(question_id)
    return AnswerHistoryResponse(
        question_id=question_id, entries=answers.history_for(question_id)
    )
