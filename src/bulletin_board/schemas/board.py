# src/bulletin_board/schemas/board.py
"""Anonymous board schemas.

Responses never expose the author of a post or comment.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CategoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    is_anonymous: bool = True


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: str | None
    is_anonymous: bool
    post_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class PostCreate(BaseModel):
    """Schema for creating an anonymous post."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    category_id: int


class PostResponse(BaseModel):
    id: int
    title: str
    content: str
    category_id: int
    likes: int
    dislikes: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    id: int
    post_id: int
    content: str
    likes: int
    dislikes: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
