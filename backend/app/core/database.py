from typing import Annotated, Generator

from fastapi import Depends
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import AUTO_CREATE_TABLES, DATABASE_URL, SQL_ECHO

# SQLite connections are shared across the threadpool that serves sync routes
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL.replace("+asyncpg", ""),
    echo=SQL_ECHO,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:  # dependency
    with Session(engine) as ses:
        yield ses


def init_db() -> None:
    """
    Dev-convenience: create any missing tables.

    Disabled with AUTO_CREATE_TABLES=false where the schema is managed
    outside the application.
    """
    if not AUTO_CREATE_TABLES:
        return
    import app.models  # noqa: F401  (registers every table on SQLModel.metadata)

    SQLModel.metadata.create_all(engine)


SesDep = Annotated[Session, Depends(get_session)]
