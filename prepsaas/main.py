from contextlib import asynccontextmanager

from fastapi import FastAPI
from .core.config import settings
from .core.cors import setup_cors
from .core.errors import setup_error_handlers
from .core.logger import configure_logging, logger
from .core.redis_manager import close_redis
from .api.v1.routers import attempts as attempts_router
from .api.v1.routers import questions as questions_router
from .api.v1.routers import quizzes as quizzes_router

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting", app=settings.APP_NAME, env=settings.APP_ENV, locks=settings.LOCK_BACKEND)
    yield
    await close_redis()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
setup_cors(app)
setup_error_handlers(app)

app.include_router(quizzes_router.router, prefix=settings.API_V1_PREFIX)
app.include_router(attempts_router.router, prefix=settings.API_V1_PREFIX)
app.include_router(questions_router.router, prefix=settings.API_V1_PREFIX)

@app.get("/healthz")
async def healthz():
    return {"status": "ok", "env": settings.APP_ENV}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("prepsaas.main:app", host="0.0.0.0", port=settings.BACKEND_PORT)
