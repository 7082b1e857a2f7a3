# phicoffee/schemas/feedback.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class FeedbackCreate(SQLModel):
    """
    Customer rating for a delivered order.

    - rating must be an integer 1..5 (strings/floats are not coerced)
    - comment is optional
    """

    model_config = ConfigDict(extra="forbid", strict=True)

    order_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    comment: str | None = None

    @field_validator("order_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("order_id cannot be empty")
        return v

    @field_validator("comment")
    @classmethod
    def normalize_comment(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class FeedbackResult(SQLModel):
    success: bool
