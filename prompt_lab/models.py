"""
Data model for the prompt workspace.

Records are stored with camelCase keys (the browser-era data format), so
Python attributes are snake_case with camelCase aliases.
"""

from typing import Optional, List, Dict, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Record(BaseModel):
    """Base for persisted records: snake_case in Python, camelCase on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_store(self) -> Dict[str, Any]:
        """Serialize for the key-value store."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AIActionType(str, Enum):
    """AI actions that can be run against a prompt."""
    EVALUATE = "EVALUATE"
    ENHANCE = "ENHANCE"
    CODE_PLAN = "CODE_PLAN"
    FUN_PROMPT = "FUN_PROMPT"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class PromptMetadata(_Record):
    """
    Derived usage metrics for a prompt.

    Every field is optional; None means "never computed", not zero.
    """

    score: Optional[int] = Field(default=None, ge=0, le=10, description="Evaluation score (1-10)")
    tokens: Optional[int] = Field(default=None, ge=0, description="Tokens used by the last AI action")
    estimated_cost: Optional[float] = Field(default=None, ge=0.0, description="Estimated cost in USD")
    runtime_ms: Optional[int] = Field(default=None, ge=0, description="Wall-clock runtime of the last AI action")
    model_used: Optional[str] = Field(default=None, description="Model that served the last AI action")
    feedback: Optional[str] = Field(default=None, description="Evaluation feedback")

    def merged(self, patch: "PromptMetadata | Dict[str, Any]") -> "PromptMetadata":
        """Return a copy with the non-None fields of ``patch`` laid over this one."""
        if isinstance(patch, PromptMetadata):
            updates = patch.model_dump(exclude_none=True)
        else:
            updates = PromptMetadata.model_validate(patch).model_dump(exclude_none=True)
        return self.model_copy(update=updates)


class PromptVersion(_Record):
    """Historical content snapshot. Reserved; nothing writes these yet."""
    content: str
    created_at: int


class Prompt(_Record):
    """A user-authored prompt plus AI-derived metadata."""

    id: str
    title: str
    content: str = ""
    category_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_favorite: bool = False
    created_at: int = Field(description="Epoch milliseconds")
    updated_at: int = Field(description="Epoch milliseconds, never below created_at")
    metadata: PromptMetadata = Field(default_factory=PromptMetadata)
    versions: Optional[List[PromptVersion]] = None

    def to_store(self) -> Dict[str, Any]:
        data = super().to_store()
        # categoryId is nullable, not optional: keep an explicit null
        data["categoryId"] = self.category_id
        return data


class Category(_Record):
    """A node in the user's category taxonomy."""

    id: str
    name: str
    parent_id: Optional[str] = None

    def to_store(self) -> Dict[str, Any]:
        data = super().to_store()
        data["parentId"] = self.parent_id
        return data


class CategoryNode(BaseModel):
    """A category with its ordered children, as produced by the category index."""

    category: Category
    children: List["CategoryNode"] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.category.id

    @property
    def name(self) -> str:
        return self.category.name


class User(_Record):
    """Session identity. Treated as an opaque capability by the workspace."""
    id: str
    name: str
    email: str


class ChartDataPoint(BaseModel):
    """One bar of the prompt stats chart."""
    name: str
    value: float
    cost: Optional[float] = None
