from collections.abc import Generator

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from statement_categorizer.services.categories import CategoryService
from statement_categorizer.services.learning import PatternStore
from statement_categorizer.storage.database import create_db_engine, create_session_factory, init_db
from statement_categorizer.storage.orm import Category, User


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def session_factory(tmp_path) -> Generator[sessionmaker[Session], None, None]:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'categorizer.db'}")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def category_service(session_factory: sessionmaker[Session]) -> CategoryService:
    return CategoryService(session_factory)


@pytest.fixture
def user_id(session_factory: sessionmaker[Session], category_service: CategoryService) -> str:
    with session_factory() as session:
        user = User(email="asha@example.com", name="Asha")
        session.add(user)
        session.commit()
        uid = user.id
    category_service.seed_defaults(uid)
    return uid


@pytest.fixture
def pattern_store(session_factory: sessionmaker[Session]) -> PatternStore:
    return PatternStore(session_factory)


@pytest.fixture
def category_ids(session_factory: sessionmaker[Session], user_id: str) -> dict[str, str]:
    with session_factory() as session:
        categories = session.scalars(select(Category).where(Category.user_id == user_id)).all()
        return {category.name: category.id for category in categories}
