from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TranslatedValue(BaseModel):
    key: Any = Field(..., description="Primary key of the translated entity")
    value: str | None = Field(
        None, description="Translated value in the effective or fallback locale"
    )

    model_config = ConfigDict(from_attributes=True, frozen=True, extra="forbid")
