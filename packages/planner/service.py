"""Settings, database wiring and workspace provisioning.

비즈니스 로직 진입점:
- 환경 설정 로드
- SQLAlchemy 엔진/세션 관리
- 개인 워크스페이스 upsert
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

import structlog
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .errors import ConfigurationError, UnauthorizedError
from .models import Base, User, Workspace, WorkspaceMember, WorkspaceRole, utcnow
from .models.base import new_id

__all__ = [
    "PlannerSettings",
    "PlannerDatabase",
    "WorkspaceContext",
    "WorkspaceResolver",
    "init_engine",
    "normalize_email",
    "workspace_name_for",
]

logger = structlog.get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./planner.db"
DEFAULT_RETENTION_DAYS = 30
AUTH_PROVIDERS = ("proxy", "credentials")
STORAGE_BACKENDS = ("local", "r2")


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(slots=True)
class PlannerSettings:
    """Planner 서비스 설정."""

    database_url: str = DEFAULT_DATABASE_URL
    cron_secret: Optional[str] = None
    retention_days: int = DEFAULT_RETENTION_DAYS
    auth_provider: str = "proxy"
    storage_backend: str = "local"
    upload_dir: str = "public/uploads"
    cors_origins: tuple[str, ...] = field(
        default_factory=lambda: ("http://localhost:3000", "http://127.0.0.1:3000")
    )

    def __post_init__(self) -> None:
        if self.auth_provider not in AUTH_PROVIDERS:
            raise ConfigurationError(
                f"AUTH_PROVIDER must be one of {', '.join(AUTH_PROVIDERS)}"
            )
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ConfigurationError(
                f"PLANNER_AUDIO_STORAGE must be one of {', '.join(STORAGE_BACKENDS)}"
            )
        if self.retention_days < 0:
            raise ConfigurationError("retention_days must not be negative")

    @classmethod
    def from_env(cls) -> PlannerSettings:
        from packages.env import load_env

        load_env()
        database_url = (
            os.getenv("PLANNER_DB_URL") or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
        )
        retention_raw = os.getenv("PLANNER_TASK_RETENTION_DAYS", str(DEFAULT_RETENTION_DAYS))
        try:
            retention_days = int(retention_raw)
        except ValueError:
            raise ConfigurationError(
                f"PLANNER_TASK_RETENTION_DAYS must be an integer, got {retention_raw!r}"
            ) from None
        cors_raw = os.getenv("PLANNER_CORS_ORIGINS")
        kwargs = {}
        if cors_raw is not None:
            kwargs["cors_origins"] = _split_csv(cors_raw)
        return cls(
            database_url=database_url,
            cron_secret=os.getenv("CRON_SECRET") or None,
            retention_days=retention_days,
            auth_provider=os.getenv("AUTH_PROVIDER", "proxy").strip().lower(),
            storage_backend=os.getenv("PLANNER_AUDIO_STORAGE", "local").strip().lower(),
            upload_dir=os.getenv("PLANNER_UPLOAD_DIR", "public/uploads"),
            **kwargs,
        )


def init_engine(settings: PlannerSettings) -> Engine:
    """SQLAlchemy 엔진 초기화."""

    database_url = settings.database_url
    # SQLAlchemy 1.4+ requires 'postgresql://' not 'postgres://'
    if database_url.startswith("postgres://"):
        database_url = "postgresql+psycopg://" + database_url[len("postgres://") :]
    elif database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+psycopg://", 1)

    engine_kwargs: dict = {}
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        path = database_url.split("://", 1)[-1]
        if path in ("", "/") or ":memory:" in path:
            from sqlalchemy.pool import StaticPool

            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update(pool_size=10, max_overflow=20)

    return create_engine(database_url, pool_pre_ping=True, **engine_kwargs)


class PlannerDatabase:
    """데이터베이스 세션 관리."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    def session(self) -> Session:
        return self._session_factory()

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def workspace_name_for(email: str) -> str:
    return f"{email} Personal Workspace"


@dataclass(frozen=True, slots=True)
class WorkspaceContext:
    """Resolved user and personal workspace for a request."""

    user: User
    workspace: Workspace


class WorkspaceResolver:
    """Find-or-create a user's personal workspace.

    Every step is an ``INSERT .. ON CONFLICT`` against a unique key followed
    by a read, so concurrent first logins converge on the same rows.
    """

    def __init__(self, session: Session):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise ConfigurationError(f"Upsert is not supported for dialect {dialect!r}")
        return insert

    def resolve(self, email: Optional[str]) -> WorkspaceContext:
        email = normalize_email(email)
        if not email:
            raise UnauthorizedError("No primary email available")

        insert = self._insert()
        now = utcnow()

        self.session.execute(
            insert(User)
            .values(id=new_id(), email=email, created_at=now)
            .on_conflict_do_nothing(index_elements=[User.email])
        )
        user = self.session.execute(select(User).where(User.email == email)).scalar_one()

        name = workspace_name_for(email)
        self.session.execute(
            insert(Workspace)
            .values(id=new_id(), name=name, created_at=now)
            .on_conflict_do_nothing(index_elements=[Workspace.name])
        )
        workspace = self.session.execute(
            select(Workspace).where(Workspace.name == name)
        ).scalar_one()

        self.session.execute(
            insert(WorkspaceMember)
            .values(
                workspace_id=workspace.id,
                user_id=user.id,
                role=WorkspaceRole.OWNER,
                created_at=now,
            )
            .on_conflict_do_update(
                index_elements=[WorkspaceMember.workspace_id, WorkspaceMember.user_id],
                set_={"role": WorkspaceRole.OWNER},
            )
        )
        self.session.commit()

        logger.debug("workspace_resolved", user_id=user.id, workspace_id=workspace.id)
        return WorkspaceContext(user=user, workspace=workspace)
