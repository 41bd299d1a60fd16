from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

TITLE_MAX = 100
CONTENT_MAX = 5000
PAGE_SIZE_MAX = 100


class NoteColor(str, Enum):
    yellow = "yellow"
    blue = "blue"
    green = "green"
    red = "red"
    purple = "purple"


DEFAULT_COLOR = NoteColor.yellow


class SortField(str, Enum):
    created_at = "created_at"
    updated_at = "updated_at"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=TITLE_MAX)
    content: str = Field(default="", max_length=CONTENT_MAX)
    color: NoteColor = DEFAULT_COLOR


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX)
    content: Optional[str] = Field(default=None, max_length=CONTENT_MAX)
    color: Optional[NoteColor] = None

    @model_validator(mode="after")
    def _reject_explicit_nulls(self) -> "NoteUpdate":
        # omitted fields stay unchanged; an explicit null is not a value
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} must not be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(mode="json", exclude_unset=True)


class NoteQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=PAGE_SIZE_MAX)
    search: str = ""
    sort_by: SortField = SortField.updated_at
    sort_order: SortOrder = SortOrder.desc

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class NoteOut(BaseModel):
    id: str
    owner_user_id: str
    title: str
    content: str
    color: NoteColor
    created_at: str
    updated_at: str


class NotePageOut(BaseModel):
    items: list[NoteOut]
    total: int
    page: int
    page_size: int
