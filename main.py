# main.py
import logging
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config import Settings, load_settings
from shared.database import build_engine, build_session_factory, init_db
from shared.responses import error_response, utc_now_iso
from epic_service.routes import build_router as build_epic_router
from quiz_service.errors import QuizError
from quiz_service.routes import build_router as build_quiz_router

SERVICE_NAME = "Epic Quiz API"
VERSION = "1.0.0"

logger = logging.getLogger("quiz-service")


def _validation_details(exc: RequestValidationError) -> list[dict]:
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return details


def create_app(settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    owns_engine = engine is None
    engine = engine or build_engine(settings.database_url, echo=settings.sql_echo)
    SessionLocal = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        logger.info("Database ready at %s (merge mode: %s)", engine.url, settings.progress_merge_mode)
        yield
        if owns_engine:
            engine.dispose()

    app = FastAPI(title=SERVICE_NAME, version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.SessionLocal = SessionLocal

    allow_credentials = True
    if settings.cors_origins == ["*"]:
        # Browsers reject "*" with credentials
        allow_credentials = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def user_context_middleware(request: Request, call_next):
        # authentication happens upstream; the gateway forwards the verified identity
        user_id = request.headers.get("X-User-ID")
        request.state.user = {"sub": user_id, "email": request.headers.get("X-User-Email")} if user_id else None
        return await call_next(request)

    @app.exception_handler(QuizError)
    async def quiz_error_handler(request: Request, exc: QuizError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.status_code, exc.error, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        try:
            label = HTTPStatus(exc.status_code).phrase
        except ValueError:
            label = "Error"
        message = exc.detail if isinstance(exc.detail, str) else label
        path = request.url.path if exc.status_code == 404 else None
        return error_response(exc.status_code, label, message, path=path)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(
            400,
            "Validation Error",
            "Invalid request parameters",
            details=_validation_details(exc),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "Internal Server Error", "An unexpected error occurred")

    @app.get("/health", operation_id="health_check", tags=["Health"])
    async def health_check():
        return {"status": "healthy", "service": "epic-quiz-api", "timestamp": utc_now_iso()}

    @app.get("/", operation_id="root", tags=["Root"])
    async def root():
        return {
            "service": SERVICE_NAME,
            "version": VERSION,
            "endpoints": [
                "/epics", "/epics/search", "/epics/trending",
                "/quiz", "/quiz/submit", "/quiz/blocks/{epic_id}", "/health",
            ],
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    app.include_router(build_epic_router(SessionLocal), prefix="/epics", tags=["Epics"])
    app.include_router(build_quiz_router(SessionLocal, settings), prefix="/quiz", tags=["Quiz"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
