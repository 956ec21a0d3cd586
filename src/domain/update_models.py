"""Update models for task store operations."""

from datetime import date

from pydantic import BaseModel, field_validator

from src.domain.task import Area, Priority


class TaskUpdate(BaseModel):
    """Partial update payload for a task. Unset fields are left untouched."""

    title: str | None = None
    description: str | None = None
    area: Area | None = None
    priority: Priority | None = None
    deadline: date | None = None
    completed: bool | None = None

    @field_validator("title")
    @classmethod
    def validate_title_present(cls, v: str | None) -> str | None:
        """Validate title is not blank when provided."""
        if v is not None and not v.strip():
            msg = "Title cannot be empty"
            raise ValueError(msg)
        return v

    def to_fields(self) -> dict:
        """Store-ready fields for the values that were explicitly set."""
        return self.model_dump(mode="json", exclude_unset=True)
