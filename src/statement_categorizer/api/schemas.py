from datetime import date as date_type
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from statement_categorizer.models import CategoryType, ImportSummary, TransactionType


class CategorizeRequest(BaseModel):
    description: str = Field(min_length=1)
    merchant: Optional[str] = None
    amount: float
    available_categories: Optional[list[str]] = None


class UserCreateRequest(BaseModel):
    email: str = Field(min_length=3)
    name: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    type: CategoryType
    color: str
    icon: Optional[str] = None
    parent_id: Optional[str] = None


class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[CategoryType] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    parent_id: Optional[str] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: str
    color: Optional[str] = None
    icon: Optional[str] = None
    is_default: bool
    parent_id: Optional[str] = None


class CorrectionRequest(BaseModel):
    category_id: str = Field(min_length=1)


class TransactionCreateRequest(BaseModel):
    date: date_type
    description: str = Field(min_length=1)
    amount: float
    type: TransactionType
    merchant: Optional[str] = None
    category_id: Optional[str] = None
    notes: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


class TransactionUpdateRequest(BaseModel):
    date: Optional[date_type] = None
    description: Optional[str] = Field(default=None, min_length=1)
    amount: Optional[float] = None
    merchant: Optional[str] = None
    category_id: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[list[str]] = None


class BulkCategorizeRequest(BaseModel):
    transaction_ids: list[str] = Field(min_length=1)


class BulkCategorizeResponse(BaseModel):
    message: str
    updated: int


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    date: date_type
    description: str
    amount: float
    merchant: Optional[str] = None
    type: str
    source: Optional[str] = None
    category_id: Optional[str] = None
    llm_categorized: bool
    llm_confidence: Optional[float] = None
    notes: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


class ImportResponse(BaseModel):
    message: str
    results: ImportSummary


class CleanupResponse(BaseModel):
    removed: int
    days: int


class RecategorizeOneResponse(BaseModel):
    transaction_id: str
    updated: bool


class HealthResponse(BaseModel):
    status: str
    llm_enabled: bool
    llm_available: bool
    model: Optional[str] = None


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_previous_page: bool


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    pagination: Pagination
