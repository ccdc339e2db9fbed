from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from statement_categorizer.errors import ConflictError, NotFoundError
from statement_categorizer.logger import get_logger
from statement_categorizer.services.categories import CategoryService
from statement_categorizer.storage.database import session_scope
from statement_categorizer.storage.orm import User

logger = get_logger(__name__)


class UserService:
    def __init__(self, session_factory: sessionmaker[Session], categories: CategoryService) -> None:
        self.session_factory = session_factory
        self.categories = categories

    def create(self, email: str, name: str | None = None) -> User:
        """Create a user together with the default category tree."""
        email = email.strip().lower()
        try:
            with session_scope(self.session_factory) as db:
                if db.scalar(select(User.id).where(User.email == email)):
                    raise ConflictError(f"User {email} already exists")
                user = User(email=email, name=name)
                db.add(user)
                db.flush()
                self.categories.seed_defaults(user.id, session=db)
        except IntegrityError as e:
            raise ConflictError(f"User {email} already exists") from e
        logger.info("[USER] Created user %s", user.id)
        return user

    def get(self, user_id: str) -> User:
        with session_scope(self.session_factory) as db:
            user = db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def delete(self, user_id: str) -> None:
        with session_scope(self.session_factory) as db:
            user = db.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            db.delete(user)
        logger.info("[USER] Deleted user %s", user_id)
