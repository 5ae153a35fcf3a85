from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notekeeper.utils.colors import normalize_color


class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(default="", max_length=50_000)
    color: Optional[str] = None
    categories: list[UUID] = Field(default_factory=list)

    @field_validator("color")
    @classmethod
    def _strip_marker(cls, v: Optional[str]) -> Optional[str]:
        return normalize_color(v) if v else None


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    body: Optional[str] = Field(default=None, max_length=50_000)
    color: Optional[str] = None
    categories: Optional[list[UUID]] = None

    @field_validator("color")
    @classmethod
    def _strip_marker(cls, v: Optional[str]) -> Optional[str]:
        return normalize_color(v) if v else None


class ShareCreate(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    permission: str = Field(pattern="^(read|edit)$")


class ShareRevoke(BaseModel):
    username: str = Field(min_length=1, max_length=64)


class CategoryLink(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    category_id: UUID = Field(alias="categoryId")


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    color: str = "ffffff"

    @field_validator("color")
    @classmethod
    def _strip_marker(cls, v: str) -> str:
        return normalize_color(v)
