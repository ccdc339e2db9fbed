import pytest

from statement_categorizer.errors import ConflictError, NotFoundError
from statement_categorizer.services.categories import CategoryService
from statement_categorizer.services.users import UserService


@pytest.fixture
def user_service(session_factory, category_service: CategoryService) -> UserService:
    return UserService(session_factory, category_service)


def test_create_user_seeds_categories(user_service: UserService, category_service: CategoryService) -> None:
    user = user_service.create(" Meera@Example.com ", "Meera")

    assert user.email == "meera@example.com"
    assert user_service.get(user.id).name == "Meera"
    assert len(category_service.available_names(user.id)) == 119


def test_duplicate_email(user_service: UserService) -> None:
    user_service.create("meera@example.com")

    with pytest.raises(ConflictError):
        user_service.create("MEERA@example.com")


def test_delete_user(user_service: UserService, category_service: CategoryService) -> None:
    user = user_service.create("meera@example.com")

    user_service.delete(user.id)

    with pytest.raises(NotFoundError):
        user_service.get(user.id)
    assert category_service.available_names(user.id) == []
    with pytest.raises(NotFoundError):
        user_service.delete(user.id)
