"""FastAPI server exposing quiz persistence and grading."""

from __future__ import annotations

import logging
from threading import Thread
from typing import NoReturn

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field
import uvicorn

from quizroom.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from quizroom.constants.network_constants import (
    API_PREFIX,
    DEFAULT_HOST,
    DEFAULT_PORT,
    USER_ID_HEADER,
    USER_ROLE_HEADER,
)
from quizroom.core.identity import SessionContext, UserRole
from quizroom.core.models import Alternative, Answer, Question, Quiz, QuizFilter
from quizroom.core.quiz_manager import QuizManager

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class QuizPayload(_CamelModel):
    """Payload schema for creating a quiz."""

    title: str
    class_name: str = Field(alias="className")
    theme: str
    is_active: bool = True


class AlternativePayload(_CamelModel):
    id: str | None = None
    text: str
    is_correct: bool = False


class QuestionPayload(_CamelModel):
    id: str | None = None
    statement: str
    points: int
    penalty: int = 0
    alternatives: list[AlternativePayload] = Field(default_factory=list)

    def to_question(self) -> Question:
        return Question(
            statement=self.statement,
            points=self.points,
            penalty=self.penalty,
            alternatives=[
                Alternative(text=item.text, is_correct=item.is_correct, id=item.id)
                for item in self.alternatives
            ],
            id=self.id,
        )


class QuestionsPayload(BaseModel):
    """Payload schema for the bulk question update."""

    questions: list[QuestionPayload]


class AnswerPayload(_CamelModel):
    question_id: str = Field(alias="questionId")
    alternative_id: str = Field(alias="alternativeId")
    alternative_text: str = Field(default="", alias="alternativeText")


class AnswersPayload(BaseModel):
    """Payload schema for submitted answers."""

    answers: list[AnswerPayload]


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def get_session_context(
    user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
    user_role: str | None = Header(default=None, alias=USER_ROLE_HEADER),
) -> SessionContext:
    """Build the caller identity from the ``X-User-Id``/``X-User-Role`` headers."""
    if not user_id or not user_role:
        raise HTTPException(status_code=401, detail="Missing user identity.")
    try:
        role = UserRole.parse(user_role)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return SessionContext(user_id=user_id, role=role)


def _raise_http_error(exc: Exception) -> NoReturn:
    if isinstance(exc, LookupError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, PermissionError):
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    raise exc


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", description=APP_ABOUT_TEXT, version=APP_VERSION)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.post(API_PREFIX, status_code=201)
    def create_quiz(
        payload: QuizPayload,
        context: SessionContext = Depends(get_session_context),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = Quiz(
            title=payload.title,
            class_name=payload.class_name,
            theme=payload.theme,
            created_by=context.user_id,
            is_active=payload.is_active,
        )
        try:
            created = manager.create_quiz(quiz, context)
        except (PermissionError, ValueError) as exc:
            _raise_http_error(exc)
        return created.to_payload()

    @app.get(API_PREFIX)
    def list_quizzes(
        created_by: str | None = Query(default=None, alias="createdBy"),
        title: str | None = None,
        class_name: str | None = Query(default=None, alias="className"),
        theme: str | None = None,
        is_active: bool | None = Query(default=None, alias="isActive"),
        _context: SessionContext = Depends(get_session_context),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        quiz_filter = QuizFilter(
            title=title,
            class_name=class_name,
            theme=theme,
            is_active=is_active,
            created_by=created_by,
        )
        return [quiz.to_payload() for quiz in manager.list_quizzes(quiz_filter)]

    @app.delete(API_PREFIX + "/{quiz_id}", status_code=204)
    def delete_quiz(
        quiz_id: str,
        context: SessionContext = Depends(get_session_context),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        try:
            manager.delete_quiz(quiz_id, context)
        except (LookupError, PermissionError) as exc:
            _raise_http_error(exc)
        return Response(status_code=204)

    @app.get(API_PREFIX + "/{quiz_id}/questions")
    def get_questions(
        quiz_id: str,
        _context: SessionContext = Depends(get_session_context),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        try:
            questions = manager.get_questions(quiz_id)
        except LookupError as exc:
            _raise_http_error(exc)
        return [question.to_payload() for question in questions]

    @app.patch(API_PREFIX + "/{quiz_id}/questions", status_code=204)
    def save_questions(
        quiz_id: str,
        payload: QuestionsPayload,
        context: SessionContext = Depends(get_session_context),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        questions = [item.to_question() for item in payload.questions]
        try:
            manager.save_questions(quiz_id, questions, context)
        except (LookupError, PermissionError, ValueError) as exc:
            _raise_http_error(exc)
        return Response(status_code=204)

    @app.post(API_PREFIX + "/{quiz_id}/answers")
    def submit_answers(
        quiz_id: str,
        payload: AnswersPayload,
        context: SessionContext = Depends(get_session_context),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        answers = [
            Answer(item.question_id, item.alternative_id, item.alternative_text)
            for item in payload.answers
        ]
        try:
            result = manager.submit_answers(quiz_id, answers, student_id=context.user_id)
        except LookupError as exc:
            _raise_http_error(exc)
        return result.to_payload()

    @app.get(API_PREFIX + "/{quiz_id}/ranking")
    def get_ranking(
        quiz_id: str,
        limit: int | None = Query(default=None, ge=1),
        _context: SessionContext = Depends(get_session_context),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        try:
            rows = manager.get_ranking(quiz_id, limit)
        except LookupError as exc:
            _raise_http_error(exc)
        return [row.to_payload() for row in rows]

    return app


def _build_server(quiz_manager: QuizManager, host: str, port: int) -> uvicorn.Server:
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    return uvicorn.Server(config)


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    server = _build_server(quiz_manager, host, port)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    logger.info("API server thread started on %s:%d", host, port)
    return thread


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API in the calling thread until interrupted."""
    _build_server(quiz_manager, host, port).run()
