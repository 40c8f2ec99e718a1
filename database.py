from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache, wraps
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LOBBY_",
        extra="ignore",
    )

    db_url: str = "sqlite:///./lobby.db"
    db_username: Optional[str] = None
    db_password: Optional[str] = None
    db_name: str = "CreatureBattleSimulator"
    db_timeout_seconds: float = 5.0
    db_pool_size: int = 5

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def is_sqlite(self) -> bool:
        return self.db_url.startswith("sqlite")

    def backend_url(self) -> URL:
        """
        Combine db_url with the configured credentials and database name.

        SQLite URLs are used as-is: they have no user, password or namespace.
        """
        url = make_url(self.db_url)
        if self.is_sqlite:
            return url
        return url.set(
            username=self.db_username or url.username,
            password=self.db_password or url.password,
            database=url.database or self.db_name,
        )


@lru_cache()
def get_settings():
    return Settings()


Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """
    Create the engine shared by every request.

    All backend calls are bounded by db_timeout_seconds:
    - SQLite: busy timeout on the connection
    - others: connect timeout, statement timeout and pool checkout timeout
    """
    timeout = settings.db_timeout_seconds

    if settings.is_sqlite:
        # check_same_thread=False: FastAPI runs sync endpoints in a threadpool
        return create_engine(
            settings.backend_url(),
            connect_args={"check_same_thread": False, "timeout": timeout},
        )

    connect_args = {}
    if settings.db_url.startswith("postgresql"):
        connect_args = {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        }
    return create_engine(
        settings.backend_url(),
        connect_args=connect_args,
        pool_size=settings.db_pool_size,
        pool_timeout=timeout,
        pool_pre_ping=True,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def transactional(func):
    """
    Run `func(db, ...)` as one transaction: commit on success, roll back and
    re-raise on error. Logging is left to the caller, which knows the trace id.
    """
    @wraps(func)
    def wrapper(db: Session, *args, **kwargs):
        try:
            result = func(db, *args, **kwargs)
            db.commit()
            return result
        except Exception:
            db.rollback()
            raise

    return wrapper
