"""FastAPI server that exposes the student and admin endpoints."""

from __future__ import annotations

from typing import Any, NoReturn

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import uvicorn

from exam_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from exam_app.constants.exam_constants import QUESTION_KIND_ALL
from exam_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from exam_app.core.exam_manager import ExamManager
from exam_app.core.question_importer import QuestionImportError
from exam_app.core.services.admin_auth import (
    AdminAuthenticator,
    InvalidPasswordError,
    InvalidTokenError,
    MissingPasswordError,
)
from exam_app.core.services.score_store import ScoreStorageError, SubmissionStatus, WriteInProgressError

_BEARER_PREFIX = "Bearer "


class LoginPayload(BaseModel):
    """Payload schema for the admin login."""

    password: str | None = None


def _get_exam_manager_dependency(exam_manager: ExamManager):
    def dependency() -> ExamManager:
        return exam_manager

    return dependency


def _get_admin_dependency(authenticator: AdminAuthenticator):
    def dependency(authorization: str | None = Header(None)) -> dict[str, Any]:
        if not authorization or not authorization.startswith(_BEARER_PREFIX):
            raise HTTPException(status_code=401, detail="Unauthorized")
        token = authorization[len(_BEARER_PREFIX):].strip()
        if not token:
            raise HTTPException(status_code=401, detail="Unauthorized")
        try:
            return authenticator.verify(token)
        except InvalidTokenError as exc:
            raise HTTPException(status_code=403, detail=str(exc)) from exc

    return dependency


def _raise_for_write_error(exc: Exception) -> NoReturn:
    if isinstance(exc, WriteInProgressError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    raise HTTPException(status_code=500, detail="Server error, please retry later") from exc


def create_api_app(exam_manager: ExamManager, authenticator: AdminAuthenticator) -> FastAPI:
    """Create a FastAPI application wired to the provided exam manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    manager_dep = _get_exam_manager_dependency(exam_manager)
    require_admin = _get_admin_dependency(authenticator)

    @app.get("/health")
    def health_check(manager: ExamManager = Depends(manager_dep)) -> dict[str, object]:
        return {"status": "healthy", "questions": manager.get_question_count().to_dict()}

    @app.post("/api/login")
    def login(payload: LoginPayload) -> dict[str, object]:
        try:
            token = authenticator.login(payload.password)
        except MissingPasswordError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except InvalidPasswordError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        return {"success": True, "token": token}

    @app.get("/api/questions")
    def get_questions(manager: ExamManager = Depends(manager_dep)) -> dict[str, object]:
        return manager.get_question_asset()

    @app.get("/api/questions/random")
    def get_random_questions(
        count: int = Query(10, description="Number of questions to draw"),
        kind: str = Query(QUESTION_KIND_ALL, alias="type", description="choice, judge or all"),
        manager: ExamManager = Depends(manager_dep),
    ) -> list[dict[str, object]]:
        return [question.to_dict() for question in manager.sample_questions(count, kind)]

    @app.post("/api/questions/reload")
    def reload_questions(
        manager: ExamManager = Depends(manager_dep),
        _claims: dict[str, Any] = Depends(require_admin),
    ) -> dict[str, object]:
        try:
            count = manager.reload_questions()
        except QuestionImportError as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"success": True, "count": count.to_dict()}

    @app.post("/api/submit")
    def submit_score(
        payload: dict[str, Any] = Body(...),
        manager: ExamManager = Depends(manager_dep),
    ) -> dict[str, object]:
        try:
            result = manager.submit_score(payload)
        except (WriteInProgressError, ScoreStorageError) as exc:
            _raise_for_write_error(exc)

        if result.status is SubmissionStatus.INVALID:
            raise HTTPException(status_code=400, detail=result.errors)
        if result.status is SubmissionStatus.LIMIT_REACHED:
            raise HTTPException(status_code=403, detail=result.message)
        return {
            "success": True,
            "message": result.message,
            "submitCount": result.submit_count,
            "record": result.record.to_dict(),
        }

    @app.get("/api/scores")
    def list_scores(
        manager: ExamManager = Depends(manager_dep),
        _claims: dict[str, Any] = Depends(require_admin),
    ) -> list[dict[str, object]]:
        return [record.to_dict(include_details=False) for record in manager.list_scores()]

    @app.get("/api/scores/{student_number}/details")
    def get_score_details(
        student_number: str,
        manager: ExamManager = Depends(manager_dep),
        _claims: dict[str, Any] = Depends(require_admin),
    ) -> dict[str, object]:
        record = manager.get_score(student_number)
        if record is None:
            raise HTTPException(status_code=404, detail="No score found for this student number")
        data = record.to_dict()
        data.setdefault("answerDetails", [])
        return data

    @app.delete("/api/scores/{student_number}")
    def delete_score(
        student_number: str,
        manager: ExamManager = Depends(manager_dep),
        _claims: dict[str, Any] = Depends(require_admin),
    ) -> dict[str, object]:
        try:
            deleted = manager.delete_score(student_number)
        except (WriteInProgressError, ScoreStorageError) as exc:
            _raise_for_write_error(exc)
        if not deleted:
            raise HTTPException(status_code=404, detail="No score found for this student number")
        return {"success": True, "message": "Score deleted"}

    @app.delete("/api/scores")
    def clear_scores(
        manager: ExamManager = Depends(manager_dep),
        _claims: dict[str, Any] = Depends(require_admin),
    ) -> dict[str, object]:
        try:
            removed = manager.clear_scores()
        except (WriteInProgressError, ScoreStorageError) as exc:
            _raise_for_write_error(exc)
        return {"success": True, "message": "All scores cleared", "removed": removed}

    @app.get("/api/stats")
    def get_stats(
        manager: ExamManager = Depends(manager_dep),
        _claims: dict[str, Any] = Depends(require_admin),
    ) -> dict[str, object]:
        return manager.get_stats().to_dict()

    @app.get("/api/analysis/question-stats")
    def get_question_stats(
        manager: ExamManager = Depends(manager_dep),
        _claims: dict[str, Any] = Depends(require_admin),
    ) -> list[dict[str, object]]:
        return [stat.to_dict() for stat in manager.get_question_stats()]

    @app.get("/api/analysis/class-stats")
    def get_class_stats(
        manager: ExamManager = Depends(manager_dep),
        _claims: dict[str, Any] = Depends(require_admin),
    ) -> list[dict[str, object]]:
        return [stat.to_dict() for stat in manager.get_class_stats()]

    return app


def run_api_server(
    exam_manager: ExamManager,
    authenticator: AdminAuthenticator,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until the process is stopped."""
    app = create_api_app(exam_manager, authenticator)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
