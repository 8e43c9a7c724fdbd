"""Catalog book Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["BookOut", "CreateBookRequest"]


class BookOut(BaseModel):
    """Response schema for a catalog book."""

    id: int
    title: str
    author: str | None = None
    isbn: str | None = None
    cover_image_url: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CreateBookRequest(BaseModel):
    """Request body for contributing a book to the shared catalog.

    Optional fields that are blank after trimming are stored as absent.
    """

    title: str = Field(..., description="Book title (required)")
    author: str | None = Field(None, description="Author name")
    isbn: str | None = Field(None, description="ISBN (unique across the catalog)")
    cover_image_url: str | None = Field(None, description="Cover image URL")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required.")
        return v

    @field_validator("author", "isbn", "cover_image_url")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None
