from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from statement_categorizer.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


def create_db_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions are handed to worker threads by the batch services.
        connect_args["check_same_thread"] = False
    engine = create_engine(url, connect_args=connect_args)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    # Registers the mapped classes on Base.metadata.
    from statement_categorizer.storage import orm  # noqa: F401

    Base.metadata.create_all(engine)
    logger.info("[DB] Schema ready on %s", engine.url.render_as_string(hide_password=True))


@contextmanager
def session_scope(factory: sessionmaker[Session], session: Session | None = None) -> Iterator[Session]:
    """
    Yield a session for one unit of work.

    A caller-provided session is used as-is and left for the caller to
    commit; otherwise a new session is committed on success and rolled back
    on error.
    """
    if session is not None:
        yield session
        return

    owned = factory()
    try:
        yield owned
        owned.commit()
    except Exception:
        owned.rollback()
        raise
    finally:
        owned.close()
