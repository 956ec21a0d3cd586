"""Unit tests for ViewState filter and selection handling."""

import pytest
from pydantic import ValidationError

from src.domain.view import FilterKey, ViewMode, ViewState


@pytest.mark.unit
class TestViewStateFilters:
    """Tests for quick filter toggling."""

    def test_defaults(self):
        state = ViewState()

        assert state.view_mode == ViewMode.CURRENT
        assert state.search_query == ""
        assert state.active_filters == {FilterKey.ALL}
        assert state.selection == set()

    def test_toggling_a_filter_replaces_all(self):
        state = ViewState()

        state.toggle_filter(FilterKey.HIGH)

        assert state.active_filters == {FilterKey.HIGH}

    def test_filters_combine(self):
        state = ViewState()

        state.toggle_filter(FilterKey.HIGH)
        state.toggle_filter(FilterKey.OVERDUE)

        assert state.active_filters == {FilterKey.HIGH, FilterKey.OVERDUE}

    def test_removing_last_filter_falls_back_to_all(self):
        state = ViewState()
        state.toggle_filter(FilterKey.TODAY)

        state.toggle_filter(FilterKey.TODAY)

        assert state.active_filters == {FilterKey.ALL}

    def test_selecting_all_clears_other_filters(self):
        state = ViewState(active_filters={FilterKey.HIGH, FilterKey.TODAY})

        state.toggle_filter(FilterKey.ALL)

        assert state.active_filters == {FilterKey.ALL}

    def test_all_cannot_be_combined(self):
        with pytest.raises(ValidationError):
            ViewState(active_filters={FilterKey.ALL, FilterKey.HIGH})

    def test_empty_filters_rejected(self):
        with pytest.raises(ValidationError):
            ViewState(active_filters=set())


@pytest.mark.unit
class TestViewStateSelection:
    """Tests for bulk selection helpers."""

    def test_toggle_selection(self):
        state = ViewState()

        state.toggle_selection("a")
        state.toggle_selection("b")
        state.toggle_selection("a")

        assert state.selection == {"b"}

    def test_select_all_and_clear(self):
        state = ViewState()

        state.select_all(["a", "b", "c"])
        assert state.selection == {"a", "b", "c"}

        state.clear_selection()
        assert state.selection == set()

    def test_prune_selection_drops_hidden_ids(self):
        state = ViewState(selection={"a", "b", "gone"})

        state.prune_selection(["a", "b", "c"])

        assert state.selection == {"a", "b"}
