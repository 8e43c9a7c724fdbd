"""Tag Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

__all__ = ["AttachTagRequest", "AttachTagResult", "TagOut"]


class TagOut(BaseModel):
    """Response schema for a tag."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class AttachTagRequest(BaseModel):
    """Request body for attaching a tag by name. The name is normalized server-side."""

    name: str = Field(..., description="Free-text tag name")


class AttachTagResult(BaseModel):
    """Result of attaching a tag: the tag plus the log's tags, alphabetical."""

    tag: TagOut
    tags: list[TagOut]
    message: str
