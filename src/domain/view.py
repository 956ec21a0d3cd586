"""View state models: view mode, active filters, search query and selection."""

from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class ViewMode(StrEnum):
    """Which classification bucket is displayed."""

    CURRENT = "current"
    PENDING = "pending"
    DONE = "done"


class FilterKey(StrEnum):
    """Quick filters. ALL is mutually exclusive with the others."""

    ALL = "all"
    HIGH = "high"
    OVERDUE = "overdue"
    TODAY = "today"


class ViewState(BaseModel):
    """Ephemeral presentation state consumed by the classification engine."""

    view_mode: ViewMode = Field(default=ViewMode.CURRENT, description="Displayed bucket")
    search_query: str = Field(default="", description="Case-insensitive search text")
    active_filters: set[FilterKey] = Field(default_factory=lambda: {FilterKey.ALL}, description="Active quick filters")
    selection: set[str] = Field(default_factory=set, description="Task IDs selected for bulk operations")

    @field_validator("active_filters")
    @classmethod
    def validate_filters(cls, v: set[FilterKey]) -> set[FilterKey]:
        """Require at least one filter, and ALL on its own."""
        if not v:
            msg = "At least one filter must be active"
            raise ValueError(msg)
        if FilterKey.ALL in v and len(v) > 1:
            msg = "'all' cannot be combined with other filters"
            raise ValueError(msg)
        return v

    def toggle_filter(self, key: FilterKey) -> None:
        """Toggle a quick filter the way the filter bar does."""
        if key == FilterKey.ALL:
            self.active_filters = {FilterKey.ALL}
            return

        filters = self.active_filters - {FilterKey.ALL}
        if key in filters:
            filters.discard(key)
        else:
            filters.add(key)
        self.active_filters = filters or {FilterKey.ALL}

    def toggle_selection(self, task_id: str) -> None:
        self.selection ^= {task_id}

    def select_all(self, visible_ids: Iterable[str]) -> None:
        self.selection = set(visible_ids)

    def clear_selection(self) -> None:
        self.selection = set()

    def prune_selection(self, visible_ids: Iterable[str]) -> None:
        """Drop selected IDs that are no longer visible."""
        self.selection &= set(visible_ids)
