from fastapi import APIRouter, Query
from starlette.concurrency import run_in_threadpool
from typing import Optional
from ....core.errors import NotFoundError
from ....schemas.quiz_schemas import QuizOut, QuizListItem
from ....schemas.attempt_schemas import AnalyticsOut, AttemptListOut, StartAttemptOut
from ....services.typing import to_iso
from ...deps import AttemptServiceDep, QuizServiceDep, UserDep

router = APIRouter(prefix="/quizzes", tags=["quizzes"])

@router.get("/", response_model=list[QuizListItem])
async def list_quizzes(
    svc: QuizServiceDep,
    _user: UserDep,
    type: Optional[str] = None,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
):
    return await run_in_threadpool(svc.list_quizzes, type, difficulty, category)

# static paths are declared before /{quiz_id} so they are not captured by it
@router.get("/analytics", response_model=AnalyticsOut)
async def quiz_analytics(svc: AttemptServiceDep, user_id: UserDep):
    return await svc.analytics(user_id)

@router.get("/user/attempts", response_model=AttemptListOut)
async def user_attempts(
    svc: AttemptServiceDep,
    user_id: UserDep,
    type: Optional[str] = None,
    limit: int = Query(5, ge=1),
    offset: int = Query(0, ge=0),
):
    return await svc.list_user_attempts(user_id, type, limit, offset)

@router.get("/{quiz_id}", response_model=QuizOut)
async def get_quiz(quiz_id: str, svc: QuizServiceDep, _user: UserDep):
    data = await run_in_threadpool(svc.get_quiz, quiz_id)
    if not data:
        raise NotFoundError(f"Quiz {quiz_id} not found")
    return data

@router.post("/{quiz_id}/start", response_model=StartAttemptOut)
async def start_quiz(quiz_id: str, svc: AttemptServiceDep, user_id: UserDep):
    attempt, quiz = await svc.start_attempt(quiz_id, user_id)
    return {
        "attempt": {
            "id": attempt.id,
            "startTime": to_iso(attempt.start_time),
            "status": attempt.status.value,
        },
        "quiz": quiz,
    }
