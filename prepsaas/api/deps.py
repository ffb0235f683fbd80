from typing import Annotated, Optional

from fastapi import Depends, Header

from ..core.config import settings
from ..core.errors import UnauthorizedError
from ..core.locks import LocalLocks, LockProvider, RedisLocks
from ..core.redis_manager import get_redis
from ..core.supabase_client import get_supabase
from ..repositories.attempt_repository import AttemptRepository
from ..repositories.question_repository import QuestionRepository
from ..repositories.quiz_repository import QuizRepository
from ..services.attempt_service import AttemptService
from ..services.quiz_service import QuizService

_local_locks = LocalLocks()


async def get_locks() -> LockProvider:
    if settings.LOCK_BACKEND == "local":
        return _local_locks
    return RedisLocks(await get_redis())


def get_current_user_id(x_user_id: Annotated[Optional[str], Header()] = None) -> str:
    # identity is asserted by the auth gateway in front of this service
    if not x_user_id:
        raise UnauthorizedError("Missing X-User-Id header")
    return x_user_id


def get_quiz_service() -> QuizService:
    client = get_supabase()
    return QuizService(QuizRepository(client), QuestionRepository(client))


def get_attempt_service(locks: Annotated[LockProvider, Depends(get_locks)]) -> AttemptService:
    client = get_supabase()
    return AttemptService(
        QuizRepository(client),
        QuestionRepository(client),
        AttemptRepository(client),
        locks,
    )


UserDep = Annotated[str, Depends(get_current_user_id)]
QuizServiceDep = Annotated[QuizService, Depends(get_quiz_service)]
AttemptServiceDep = Annotated[AttemptService, Depends(get_attempt_service)]
