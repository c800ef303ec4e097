# src/bulletin_board/schemas/vote.py
"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class VoteRequest(BaseModel):
    """Schema for toggling a reaction."""

    vote_type: Literal["like", "dislike"] = Field(
        ..., description="Clicking the same reaction twice removes it"
    )


class VoteResponse(BaseModel):
    success: bool
    likes: int
    dislikes: int
    user_vote: Literal["like", "dislike"] | None
    error: str | None = None


class MyVoteResponse(BaseModel):
    user_vote: Literal["like", "dislike"] | None
