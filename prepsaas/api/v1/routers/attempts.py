from fastapi import APIRouter
from ....schemas.attempt_schemas import (
    AnswerAckOut,
    AnswerIn,
    AttemptDetailOut,
    AttemptHandleOut,
    SubmitIn,
    SubmitOut,
)
from ....services.attempt_service import AnswerSubmission, results_dict
from ....services.typing import to_iso
from ...deps import AttemptServiceDep, UserDep

router = APIRouter(prefix="/attempts", tags=["attempts"])

def _submission(a: AnswerIn) -> AnswerSubmission:
    return AnswerSubmission(
        question_id=a.questionId,
        answer=a.answer,
        time_spent=a.timeSpent,
        is_flagged=a.isFlagged,
    )

@router.post("/{attempt_id}/answer", response_model=AnswerAckOut)
async def submit_answer(attempt_id: str, payload: AnswerIn, svc: AttemptServiceDep, user_id: UserDep):
    await svc.record_answer(attempt_id, user_id, _submission(payload))
    return {"success": True, "message": "Answer saved"}

@router.post("/{attempt_id}/submit", response_model=SubmitOut)
async def submit_quiz(attempt_id: str, payload: SubmitIn, svc: AttemptServiceDep, user_id: UserDep):
    outcome = await svc.finalize_attempt(
        attempt_id, user_id, [_submission(a) for a in payload.answers]
    )
    return {
        "message": "Quiz submitted successfully",
        "statsUpdated": outcome.stats_updated,
        "results": results_dict(outcome.attempt),
    }

@router.post("/{attempt_id}/abandon", response_model=AttemptHandleOut)
async def abandon_quiz(attempt_id: str, svc: AttemptServiceDep, user_id: UserDep):
    attempt = await svc.abandon_attempt(attempt_id, user_id)
    return {"id": attempt.id, "startTime": to_iso(attempt.start_time), "status": attempt.status.value}

@router.get("/{attempt_id}/results", response_model=AttemptDetailOut)
async def get_results(attempt_id: str, svc: AttemptServiceDep, user_id: UserDep):
    return await svc.get_results(attempt_id, user_id)
