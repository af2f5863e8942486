"""FastAPI application for tasks and voice notes.

개인 생산성 API:
- 개인 워크스페이스 자동 생성
- 할 일 수명주기 (생성/수정/보관/삭제/고정)
- 음성 메모 수명주기 및 할 일 전환 표시
- 삭제된 할 일 보존 기간 정리
"""

from __future__ import annotations

import datetime as dt
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Generator, Optional

import structlog
from fastapi import Depends, FastAPI, File, Form, Header, Query, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.staticfiles import StaticFiles
from sqlalchemy.orm import Session

from . import ranking, schemas
from .accounts import AccountService
from .errors import PlannerError, UnauthorizedError, ValidationError
from .models import as_utc
from .retention import authorize_cron_request, purge_deleted_tasks
from .service import (
    PlannerDatabase,
    PlannerSettings,
    WorkspaceContext,
    WorkspaceResolver,
    init_engine,
    normalize_email,
)
from .storage import AudioStorage, AudioUpload, LocalAudioStorage, build_storage
from .tasks import TaskService, parse_due_date
from .voice_notes import VoiceNoteService

__all__ = ["create_app", "Identity", "PlannerSettings"]

logger = structlog.get_logger(__name__)

TASK_SORTS = ("created", "priority")


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller as established upstream."""

    user_id: str
    email: Optional[str] = None


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p not in ("body", "query", "form"))
        parts.append(f"{loc}: {error.get('msg')}" if loc else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def _parse_day(raw: Optional[str]) -> Optional[dt.date]:
    parsed = parse_due_date(raw)
    return parsed.date() if parsed else None


def create_app(
    settings: PlannerSettings | None = None,
    *,
    storage: AudioStorage | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or PlannerSettings.from_env()
    engine = init_engine(settings)
    database = PlannerDatabase(engine=engine)
    database.create_all()
    audio_storage = storage or build_storage(settings.storage_backend, settings.upload_dir)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        database.dispose()

    app = FastAPI(
        title="Planner API",
        version="1.0.0",
        description="Voice notes and tasks for personal workspaces",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if isinstance(audio_storage, LocalAudioStorage):
        audio_storage.root.mkdir(parents=True, exist_ok=True)
        app.mount(
            audio_storage.url_prefix,
            StaticFiles(directory=str(Path(audio_storage.root))),
            name="uploads",
        )

    basic_auth = HTTPBasic(auto_error=False)

    def get_session() -> Generator[Session, None, None]:
        session = database.session()
        try:
            yield session
        finally:
            session.close()

    def get_identity(
        request: Request,
        credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
        session: Session = Depends(get_session),
    ) -> Identity:
        if settings.auth_provider == "credentials":
            if credentials is None:
                raise UnauthorizedError()
            user = AccountService(session).authenticate(
                credentials.username, credentials.password
            )
            if user is None:
                raise UnauthorizedError()
            return Identity(user_id=user.id, email=user.email)

        user_id = (request.headers.get("X-User-Id") or "").strip()
        if not user_id:
            raise UnauthorizedError()
        email = normalize_email(request.headers.get("X-User-Email")) or None
        return Identity(user_id=user_id, email=email)

    def get_workspace(
        identity: Identity = Depends(get_identity),
        session: Session = Depends(get_session),
    ) -> WorkspaceContext:
        return WorkspaceResolver(session).resolve(identity.email)

    def get_task_service(session: Session = Depends(get_session)) -> TaskService:
        return TaskService(session)

    def get_note_service(session: Session = Depends(get_session)) -> VoiceNoteService:
        return VoiceNoteService(session, storage=audio_storage)

    @app.exception_handler(PlannerError)
    async def _handle_planner_error(request: Request, exc: PlannerError):
        if exc.status_code >= 500:
            logger.error(
                "request_misconfigured",
                method=request.method,
                path=request.url.path,
                error=exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": _describe_validation_error(exc)},
        )

    @app.exception_handler(Exception)
    async def _handle_errors(request: Request, exc: Exception):
        logger.exception(
            "request_failed",
            method=request.method,
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    # ========================================================================
    # 계정
    # ========================================================================

    @app.post("/auth/register", response_model=schemas.UserEnvelope, status_code=201)
    def register(
        request: schemas.RegisterRequest,
        session: Session = Depends(get_session),
    ) -> schemas.UserEnvelope:
        user = AccountService(session).register(request)
        return schemas.UserEnvelope(user=schemas.UserResponse.model_validate(user))

    # ========================================================================
    # 할 일
    # ========================================================================

    @app.get("/tasks", response_model=schemas.TaskListResponse)
    def list_tasks(
        status_filter: Optional[str] = Query(None, alias="status"),
        sort: Optional[str] = Query(None),
        date_from: Optional[str] = Query(None, alias="from"),
        date_to: Optional[str] = Query(None, alias="to"),
        page: Optional[int] = Query(None),
        page_size: Optional[int] = Query(None, alias="pageSize"),
        context: WorkspaceContext = Depends(get_workspace),
        service: TaskService = Depends(get_task_service),
    ) -> schemas.TaskListResponse:
        if sort is not None and sort not in TASK_SORTS:
            raise ValidationError(f"sort must be one of {', '.join(TASK_SORTS)}")
        tasks = service.list_tasks(context.workspace.id, status_filter)
        if date_from or date_to:
            tasks = ranking.filter_tasks_by_date(
                tasks, _parse_day(date_from), _parse_day(date_to)
            )
        if sort == "priority":
            tasks = ranking.rank_tasks(tasks)

        pagination = None
        if page is not None or page_size is not None:
            try:
                sliced = ranking.paginate(
                    tasks,
                    page=1 if page is None else page,
                    page_size=ranking.DEFAULT_PAGE_SIZE if page_size is None else page_size,
                )
            except ValueError as exc:
                raise ValidationError(str(exc)) from None
            tasks = sliced.items
            pagination = schemas.PageInfo(
                page=sliced.page,
                page_size=sliced.page_size,
                total=sliced.total,
                total_pages=sliced.total_pages,
            )
        return schemas.TaskListResponse(
            tasks=[schemas.TaskResponse.from_task(task) for task in tasks],
            pagination=pagination,
        )

    @app.post("/tasks", response_model=schemas.TaskEnvelope, status_code=201)
    def create_task(
        request: schemas.TaskCreateRequest,
        context: WorkspaceContext = Depends(get_workspace),
        service: TaskService = Depends(get_task_service),
    ) -> schemas.TaskEnvelope:
        task = service.create_task(context.workspace.id, request, created_by_id=context.user.id)
        return schemas.TaskEnvelope(task=schemas.TaskResponse.from_task(task))

    @app.post("/tasks/purge-deleted", response_model=schemas.PurgeResponse)
    def purge_deleted(
        authorization: Optional[str] = Header(None),
        x_cron_secret: Optional[str] = Header(None),
        session: Session = Depends(get_session),
    ) -> schemas.PurgeResponse:
        authorize_cron_request(
            settings.cron_secret,
            authorization=authorization,
            cron_secret=x_cron_secret,
        )
        deleted = purge_deleted_tasks(session, retention_days=settings.retention_days)
        return schemas.PurgeResponse(deleted_count=deleted)

    @app.patch("/tasks/{task_id}", response_model=schemas.TaskEnvelope)
    def update_task(
        task_id: str,
        request: schemas.TaskUpdateRequest,
        context: WorkspaceContext = Depends(get_workspace),
        service: TaskService = Depends(get_task_service),
    ) -> schemas.TaskEnvelope:
        task = service.update_task(task_id, context.workspace.id, request)
        return schemas.TaskEnvelope(task=schemas.TaskResponse.from_task(task))

    @app.patch("/tasks/{task_id}/status", response_model=schemas.TaskEnvelope)
    def update_task_status(
        task_id: str,
        request: schemas.StatusUpdateRequest,
        context: WorkspaceContext = Depends(get_workspace),
        service: TaskService = Depends(get_task_service),
    ) -> schemas.TaskEnvelope:
        task = service.set_status(task_id, context.workspace.id, request.status)
        return schemas.TaskEnvelope(task=schemas.TaskResponse.from_task(task))

    @app.patch("/tasks/{task_id}/pin", response_model=schemas.TaskEnvelope)
    def update_task_pin(
        task_id: str,
        request: schemas.PinUpdateRequest,
        context: WorkspaceContext = Depends(get_workspace),
        service: TaskService = Depends(get_task_service),
    ) -> schemas.TaskEnvelope:
        task = service.set_pinned(task_id, context.workspace.id, request.is_pinned)
        return schemas.TaskEnvelope(task=schemas.TaskResponse.from_task(task))

    # ========================================================================
    # 음성 메모
    # ========================================================================

    @app.get("/voice-notes", response_model=schemas.NoteListResponse)
    def list_voice_notes(
        tab: Optional[str] = Query(None),
        status_alias: Optional[str] = Query(None, alias="status"),
        identity: Identity = Depends(get_identity),
        service: VoiceNoteService = Depends(get_note_service),
    ) -> schemas.NoteListResponse:
        notes = service.list_notes(identity.user_id, tab if tab is not None else status_alias)
        return schemas.NoteListResponse(
            notes=[schemas.NoteResponse.from_note(note) for note in notes]
        )

    @app.post("/voice-notes", response_model=schemas.NoteEnvelope, status_code=201)
    def create_voice_note(
        title: Optional[str] = Form(None),
        content: Optional[str] = Form(None),
        note_type: Optional[str] = Form(None, alias="type"),
        duration_ms: Optional[str] = Form(None, alias="durationMs"),
        audio: Optional[UploadFile] = File(None),
        identity: Identity = Depends(get_identity),
        service: VoiceNoteService = Depends(get_note_service),
    ) -> schemas.NoteEnvelope:
        upload = None
        if audio is not None:
            try:
                upload = AudioUpload(
                    data=audio.file.read(),
                    filename=audio.filename,
                    content_type=audio.content_type,
                )
            finally:
                audio.file.close()
        note = service.create_note(
            identity.user_id,
            title=title,
            content=content,
            note_type=note_type,
            duration_ms=duration_ms,
            audio=upload,
        )
        return schemas.NoteEnvelope(note=schemas.NoteResponse.from_note(note))

    @app.patch("/voice-notes/{note_id}", response_model=schemas.NoteEnvelope)
    def update_voice_note(
        note_id: str,
        request: schemas.NoteUpdateRequest,
        identity: Identity = Depends(get_identity),
        service: VoiceNoteService = Depends(get_note_service),
    ) -> schemas.NoteEnvelope:
        note = service.update_note(note_id, identity.user_id, request)
        return schemas.NoteEnvelope(note=schemas.NoteResponse.from_note(note))

    @app.patch("/voice-notes/{note_id}/status", response_model=schemas.NoteEnvelope)
    def update_voice_note_status(
        note_id: str,
        request: schemas.StatusUpdateRequest,
        identity: Identity = Depends(get_identity),
        service: VoiceNoteService = Depends(get_note_service),
    ) -> schemas.NoteEnvelope:
        note = service.set_status(note_id, identity.user_id, request.status)
        return schemas.NoteEnvelope(note=schemas.NoteResponse.from_note(note))

    @app.patch("/voice-notes/{note_id}/task-created", response_model=schemas.TaskCreatedEnvelope)
    def mark_voice_note_task_created(
        note_id: str,
        identity: Identity = Depends(get_identity),
        service: VoiceNoteService = Depends(get_note_service),
    ) -> schemas.TaskCreatedEnvelope:
        note = service.mark_task_created(note_id, identity.user_id)
        return schemas.TaskCreatedEnvelope(
            note=schemas.TaskCreatedMarker(
                id=note.id, task_created_at=as_utc(note.task_created_at)
            )
        )

    return app
