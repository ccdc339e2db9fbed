from datetime import date as date_type
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    ASSET = "asset"


CategoryType = Literal["income", "expense", "asset", "investment"]
MatchType = Literal["exact", "description", "merchant"]
SuggestionSource = Literal["learned", "quick_match", "llm", "fallback"]


def duplicate_key(day: date_type, description: str, amount: float) -> str:
    return f"{day.isoformat()}|{description.lower()}|{abs(amount):.2f}"


class ParsedTransaction(BaseModel):
    date: date_type
    description: str
    amount: float = Field(ge=0)
    merchant: Optional[str] = None
    type: TransactionType
    source: str
    original_row: dict[str, Any] = Field(default_factory=dict)

    def duplicate_key(self) -> str:
        return duplicate_key(self.date, self.description, self.amount)


class ColumnMapping(BaseModel):
    date_column: str
    description_column: str
    amount_column: str
    merchant_column: Optional[str] = None
    type_column: Optional[str] = None


class StatementParseResult(BaseModel):
    detected_format: Optional[str] = None
    transactions: list[ParsedTransaction] = Field(default_factory=list)
    headers: list[str] = Field(default_factory=list)
    preview_rows: list[dict[str, Any]] = Field(default_factory=list)
    total_rows: int = 0
    skipped_rows: int = 0


class CategorySuggestion(BaseModel):
    category: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: Optional[str] = None
    source: SuggestionSource = "fallback"


class PatternMatch(BaseModel):
    category_id: str
    category_name: str
    confidence: float
    match_type: MatchType


class PatternView(BaseModel):
    id: str
    description: str
    merchant: Optional[str] = None
    category_id: str
    category_name: str
    confidence: float
    is_user_correction: bool


class LearningStats(BaseModel):
    total_patterns: int
    user_corrections: int
    ai_patterns: int
    average_confidence: float


class RecategorizeResult(BaseModel):
    updated: int = 0
    total: int = 0
    failed: int = 0


class ImportSummary(BaseModel):
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    categorized: int = 0
    parse_skipped: int = 0


class CategoryNode(BaseModel):
    id: str
    name: str
    type: str
    color: Optional[str] = None
    icon: Optional[str] = None
    is_default: bool = False
    parent_id: Optional[str] = None
    children: list["CategoryNode"] = Field(default_factory=list)


AssetAction = Literal["created", "increased", "decreased", "ignored", "failed"]


class AssetEffect(BaseModel):
    action: AssetAction
    asset_id: Optional[str] = None
    error: Optional[str] = None
