"""Exceptions raised by the categorizer services."""


class CategorizerError(Exception):
    """Base class for categorizer errors."""
    pass


class StatementParseError(CategorizerError):
    """No usable transactions could be read from a statement."""
    pass


class NotFoundError(CategorizerError):
    """A referenced user, transaction or category does not exist."""
    pass


class InvalidCategoryError(CategorizerError):
    """The category does not belong to the user, or the request is malformed."""
    pass


class CategoryInUseError(CategorizerError):
    """The category cannot be deleted while it is referenced."""
    pass


class LLMError(CategorizerError):
    """The LLM backend failed or returned something unusable."""
    pass


class ConflictError(CategorizerError):
    """The record already exists."""
    pass


class InvalidTransactionError(CategorizerError):
    """A transaction request has missing or unsupported fields."""
    pass
