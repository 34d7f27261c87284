"""Question API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catprep.api.auth import AdminIdentity, CurrentIdentity
from catprep.db import get_db
from catprep.models.question import (
    AnswerCheck,
    AnswerResult,
    BulkImportResult,
    GenerateRequest,
    Question,
    QuestionCreate,
    QuestionImport,
    QuestionPublic,
)
from catprep.services.question_bank import QuestionBankService, to_public
from catprep.services.selector import QuestionSelector

router = APIRouter(prefix="/api/questions", tags=["questions"])


@router.post("/generate", response_model=list[QuestionPublic])
async def generate_questions(
    request: GenerateRequest,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Random selection without answers, for previews and untimed practice."""
    questions = await QuestionSelector(db).select(
        request.subject_id, request.topic_ids, request.difficulty, request.count
    )
    return [to_public(q) for q in questions]


@router.post("/validate", response_model=AnswerResult)
async def validate_answer(
    answer: AnswerCheck,
    identity: CurrentIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Check one answer and reveal the solution, unless the question is in an open test."""
    return await QuestionBankService(db).check_answer(answer, identity.user_id)


@router.get("/admin/all", response_model=list[Question])
async def list_all_questions(admin: AdminIdentity, db: AsyncSession = Depends(get_db)):
    return await QuestionBankService(db).list_questions()


@router.post("", response_model=Question, status_code=201)
async def create_question(
    question: QuestionCreate,
    admin: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Create a new question."""
    return await QuestionBankService(db).create_question(question)


@router.post("/bulk", response_model=BulkImportResult)
async def bulk_import_questions(
    rows: list[QuestionImport],
    admin: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    """Import questions that reference subject and topic by name."""
    return await QuestionBankService(db).import_questions(rows)


@router.delete("/{question_id}")
async def delete_question(
    question_id: str,
    admin: AdminIdentity,
    db: AsyncSession = Depends(get_db),
):
    await QuestionBankService(db).delete_question(question_id)
    return {"message": "Question deleted"}
