"""Pydantic models for creating records in the task store."""

from datetime import date

from pydantic import BaseModel, Field, field_validator

from src.domain.task import Area, Priority


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record."""

    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    area: Area = Field(default=Area.HOME, description="Home, Work or Self")
    priority: Priority = Field(default=Priority.MEDIUM, description="high, medium or low")
    deadline: date = Field(..., description="Deadline date")

    @field_validator("title")
    @classmethod
    def validate_title_present(cls, v: str) -> str:
        """Validate title is not blank."""
        if not v.strip():
            msg = "Title is required"
            raise ValueError(msg)
        return v.strip()
