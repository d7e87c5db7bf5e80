"""Pydantic v2 schemas for the pastoral guidance API. Wire names are camelCase."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GuidanceRequest(_CamelModel):
    question: str = Field(..., max_length=8000)
    conversation_history: List[Any] = Field(default_factory=list)
    """Turns as {"role": "user" | "assistant", "content": "..."}; anything else is dropped downstream."""
    user_name: Optional[str] = Field(default=None, max_length=255)
    user_email: Optional[str] = Field(default=None, max_length=255)
    session_id: Optional[str] = Field(default=None, max_length=255)

    @field_validator("question")
    @classmethod
    def _question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question must not be blank")
        return value


class GuidanceResponse(_CamelModel):
    answer: str
    is_crisis: bool = False
    is_serious: bool = False
    is_mandatory_report: bool = False


class MandatoryReportRequest(_CamelModel):
    session_id: str = Field(..., min_length=1, max_length=255)
    full_name: str = Field(..., min_length=1, max_length=255)
    age: str = Field(..., min_length=1, max_length=8)
    phone: str = Field(..., min_length=1, max_length=64)
    address: str = Field(..., min_length=1, max_length=1000)
    google_email: Optional[str] = Field(default=None, max_length=255)

    @field_validator("age", mode="before")
    @classmethod
    def _age_as_text(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class MandatoryReportResponse(_CamelModel):
    success: bool
    message: str
