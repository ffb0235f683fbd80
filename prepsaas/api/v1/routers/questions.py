from fastapi import APIRouter
from starlette.concurrency import run_in_threadpool
from typing import Optional
from ....schemas.quiz_schemas import HintsOut, QuestionOut, SolutionOut
from ...deps import QuizServiceDep, UserDep

router = APIRouter(prefix="/questions", tags=["questions"])

@router.get("/", response_model=list[QuestionOut])
async def list_questions(
    svc: QuizServiceDep,
    _user: UserDep,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    topic: Optional[str] = None,
    type: Optional[str] = None,
):
    return await run_in_threadpool(svc.list_questions, category, difficulty, topic, type)

@router.get("/{question_id}", response_model=QuestionOut)
async def get_question(question_id: str, svc: QuizServiceDep, _user: UserDep):
    return await run_in_threadpool(svc.get_question, question_id)

@router.get("/{question_id}/hints", response_model=HintsOut)
async def get_hints(question_id: str, svc: QuizServiceDep, _user: UserDep):
    return {"hints": await run_in_threadpool(svc.get_hints, question_id)}

@router.get("/{question_id}/solution", response_model=SolutionOut)
async def get_solution(question_id: str, svc: QuizServiceDep, _user: UserDep):
    return await run_in_threadpool(svc.get_solution, question_id)
