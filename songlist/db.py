import os
import logging
from typing import Generator
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine

from songlist.config import DATABASE_URL
from songlist.errors import StoreError

logger = logging.getLogger(__name__)

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    echo=False
)


def init_db(bind=None):
    bind = bind or engine
    if bind.url.drivername.startswith("sqlite") and bind.url.database not in (None, "", ":memory:"):
        os.makedirs(os.path.dirname(os.path.abspath(bind.url.database)), exist_ok=True)
    # models must be imported so their tables are registered on the metadata
    import songlist.models  # noqa: F401
    SQLModel.metadata.create_all(bind)
    logger.info("Database initialized at %s", bind.url.render_as_string(hide_password=True))


# FastAPI dependency
def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def commit(session: Session, action: str):
    """Commit, or roll back and raise StoreError."""
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Store error while trying to %s", action)
        raise StoreError(f"{action} failed") from e
