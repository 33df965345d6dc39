"""FastAPI server exposing the quiz flow and statistics endpoints."""

from __future__ import annotations

import logging
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictInt
import uvicorn

from quizzy.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quizzy.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, OWNER_HEADER
from quizzy.core.errors import (
    EmptyPoolError,
    InvalidSelectionError,
    NoActiveSessionError,
    QuizSessionError,
    QuizzyError,
    SourceUnavailableError,
)
from quizzy.core.markdown_renderer import render_question
from quizzy.core.models import ResultRecord, SessionSnapshot
from quizzy.core.quiz_manager import QuizManager
from quizzy.core.services.identity import HeaderIdentityProvider
from quizzy.core.services.stats_aggregator import short_owner_id

logger = logging.getLogger(__name__)


class SelectPayload(BaseModel):
    """Payload schema for choosing an option on the current question."""

    selected_option_index: StrictInt


class ProfilePayload(BaseModel):
    display_name: str


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _require_owner(request: Request) -> str:
    identity = HeaderIdentityProvider(request.headers)
    owner_id = identity.current_owner_id()
    if not identity.is_authenticated() or owner_id is None:
        raise HTTPException(status_code=401, detail=f"Missing {OWNER_HEADER} header.")
    return owner_id


def _status_for_error(exc: QuizzyError) -> int:
    if isinstance(exc, (EmptyPoolError, SourceUnavailableError)):
        return 503
    if isinstance(exc, NoActiveSessionError):
        return 404
    if isinstance(exc, InvalidSelectionError):
        return 422
    if isinstance(exc, QuizSessionError):
        return 409
    return 500


def _serialize_session(snapshot: SessionSnapshot) -> dict[str, object]:
    question = snapshot.current_question
    payload: dict[str, object] = {
        "position": snapshot.position,
        "total": snapshot.total,
        "score": snapshot.score,
        "completed": snapshot.is_completed,
        "selected_option_index": snapshot.selected_option_index,
        "question_id": None,
        "question_html": None,
        "options": [],
        "options_html": [],
    }
    if question is not None:
        rendered = render_question(question)
        payload.update(
            question_id=rendered.question_id,
            question_html=rendered.prompt_html,
            options=list(question.options),
            options_html=list(rendered.options_html),
        )
    return payload


def _serialize_record(record: ResultRecord) -> dict[str, object]:
    return {
        "score": record.score,
        "total": record.total,
        "percentage": record.percentage,
        "completed_at": record.completed_at.isoformat(),
    }


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.exception_handler(QuizzyError)
    async def handle_quiz_error(request: Request, exc: QuizzyError) -> JSONResponse:
        status_code = _status_for_error(exc)
        if status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    @app.get("/health")
    def health(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return {"status": "ok", "question_count": manager.get_question_count()}

    @app.post("/quiz", status_code=201)
    def start_quiz(
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _serialize_session(manager.start_quiz(owner_id))

    @app.get("/quiz")
    def get_quiz(
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _serialize_session(manager.get_session(owner_id))

    @app.delete("/quiz", status_code=204)
    def abandon_quiz(
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> None:
        manager.abandon_quiz(owner_id)

    @app.post("/quiz/select")
    def select_option(
        payload: SelectPayload,
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _serialize_session(manager.select_option(owner_id, payload.selected_option_index))

    @app.post("/quiz/next")
    def advance(
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _serialize_session(manager.advance(owner_id))

    @app.post("/quiz/finish", status_code=201)
    def finish_quiz(
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        outcome = manager.finish_quiz(owner_id)
        return {
            "result": _serialize_record(outcome.record),
            "persisted": outcome.persisted,
            "warning": outcome.warning,
        }

    @app.get("/me")
    def get_profile(
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        stats = manager.get_personal_summary(owner_id)
        return {
            "name": stats.name,
            "attempt_count": stats.summary.attempt_count,
            "best_score": stats.summary.best_score,
            "stale": stats.stale,
        }

    @app.put("/me")
    def update_profile(
        payload: ProfilePayload,
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            profile = manager.set_display_name(owner_id, payload.display_name)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"name": profile.name}

    @app.get("/me/history")
    def get_history(
        limit: int | None = Query(default=None, ge=1),
        owner_id: str = Depends(_require_owner),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        records = manager.get_history(owner_id, limit)
        return {"attempts": [_serialize_record(record) for record in records]}

    @app.get("/leaderboard")
    def get_leaderboard(
        limit: int | None = Query(default=None, ge=1),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        rows = manager.get_leaderboard(limit)
        return {
            "rows": [
                {
                    "rank": row.rank,
                    "user": short_owner_id(row.record.owner_id),
                    **_serialize_record(row.record),
                }
                for row in rows
            ]
        }

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API with uvicorn, blocking until the server stops."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level.lower())
    uvicorn.Server(config).run()


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Serve the API from a background daemon thread and return that thread."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizzyApiServer", daemon=True)
    thread.start()
    logger.info("API server thread started on %s:%d", host, port)
    return thread
