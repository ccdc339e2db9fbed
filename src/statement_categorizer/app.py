import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from statement_categorizer.api.routes import (
    categories,
    categorize,
    learning,
    recategorize,
    statements,
    transactions,
    users,
)
from statement_categorizer.classifiers.llm import LLMClassifier
from statement_categorizer.core import settings
from statement_categorizer.logger import get_logger, setup_logging
from statement_categorizer.manager import CategorizerService
from statement_categorizer.services.assets import AssetSideEffectHandler
from statement_categorizer.services.categories import CategoryService
from statement_categorizer.services.importer import ImportService
from statement_categorizer.services.learning import LearningService, PatternStore
from statement_categorizer.services.recategorization import RecategorizationService
from statement_categorizer.services.transactions import TransactionService
from statement_categorizer.services.users import UserService
from statement_categorizer.storage.database import create_db_engine, create_session_factory, init_db

logger = get_logger(__name__)


def create_app(
    database_url: str | None = None,
    llm: LLMClassifier | None = None,
    enable_llm: bool = True,
) -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        if not os.getenv("OPENAI_API_KEY") and llm is None:
            logger.info("OPENAI_API_KEY not set. LLM categorization will be disabled.")

        engine = create_db_engine(database_url or settings.database_url())
        init_db(engine)
        session_factory = create_session_factory(engine)

        patterns = PatternStore(session_factory)
        service = CategorizerService(
            patterns,
            learned_threshold=settings.learned_pattern_threshold(),
            llm=llm,
            enable_llm=enable_llm,
        )
        category_service = CategoryService(session_factory)
        assets = AssetSideEffectHandler()

        app.state.engine = engine
        app.state.patterns = patterns
        app.state.service = service
        app.state.categories = category_service
        app.state.users = UserService(session_factory, category_service)
        app.state.learning = LearningService(session_factory, patterns)
        app.state.transactions = TransactionService(session_factory, service, assets)
        app.state.importer = ImportService(
            session_factory,
            service,
            patterns,
            assets,
            batch_size=settings.batch_size(),
            ai_pattern_threshold=settings.ai_pattern_threshold(),
        )
        app.state.recategorization = RecategorizationService(
            session_factory,
            service,
            threshold=settings.recategorize_threshold(),
            batch_size=settings.batch_size(),
            call_delay=settings.recategorize_delay(),
        )

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")
        engine.dispose()

    app = FastAPI(title="Statement Categorizer", lifespan=lifespan)

    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(statements.router)
    app.include_router(transactions.router)
    app.include_router(categorize.router)
    app.include_router(learning.router)
    app.include_router(recategorize.router)

    return app


app = create_app()
