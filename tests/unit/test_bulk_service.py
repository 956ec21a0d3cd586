"""Unit tests for best-effort bulk operations."""

import pytest

from src.domain.view import ViewState
from src.services import export_service
from src.services.bulk_service import BulkOperationCoordinator
from tests.unit.conftest import OWNER_ID


@pytest.fixture
def view_state():
    return ViewState()


@pytest.fixture
def bulk(store, view_state, notifier):
    return BulkOperationCoordinator(store=store, view_state=view_state, notifier=notifier)


@pytest.fixture
def seeded(backend, store, seed_task):
    """Three open tasks, published to the store."""
    ids = [seed_task(title=f"Task {name}") for name in ("X", "Y", "Z")]
    backend.publish(OWNER_ID)
    return ids


@pytest.mark.unit
class TestBulkComplete:
    """Tests for bulk completion."""

    async def test_partial_failure_is_reported_per_task(self, backend, store, bulk, view_state, seeded):
        x, y, _ = seeded
        backend.fail_ids.add(y)
        view_state.select_all([x, y])

        result = await bulk.complete([x, y])

        assert result.success_count == 1
        assert result.succeeded == [x]
        assert result.failed_ids == {y}
        assert view_state.selection == set()
        assert store.get(x).completed is True
        assert store.get(y).completed is False

    async def test_all_succeed(self, store, bulk, seeded, notifier):
        result = await bulk.complete(seeded)

        assert result.success_count == 3
        assert result.failed == {}
        assert all(task.completed for task in store.tasks)
        assert notifier.sent[-1] == ("Bulk Complete Success!", "Completed 3 tasks")

    async def test_partial_failure_notifies_incomplete(self, backend, bulk, seeded, notifier):
        backend.fail_ids.add(seeded[0])

        await bulk.complete(seeded)

        assert notifier.sent[-1] == ("Bulk Complete Incomplete", "Completed 2 tasks, 1 failed")

    async def test_unknown_ids_fail_without_store_call(self, backend, bulk, seeded):
        result = await bulk.complete([seeded[0], "ghost"])

        assert result.succeeded == [seeded[0]]
        assert "ghost" in result.failed
        assert ("update", "ghost") not in backend.calls

    async def test_duplicate_ids_applied_once(self, backend, bulk, seeded):
        result = await bulk.complete([seeded[0], seeded[0]])

        assert result.succeeded == [seeded[0]]
        assert backend.calls.count(("update", seeded[0])) == 1

    async def test_empty_batch(self, bulk, notifier):
        result = await bulk.complete([])

        assert result.success_count == 0
        assert result.failed == {}
        assert notifier.sent == []


@pytest.mark.unit
class TestBulkDelete:
    """Tests for bulk and full deletion."""

    async def test_delete_selected(self, store, bulk, seeded):
        result = await bulk.delete(seeded[:2])

        assert result.success_count == 2
        assert [task.id for task in store.tasks] == [seeded[2]]

    async def test_delete_partial_failure(self, backend, store, bulk, seeded):
        backend.fail_ids.add(seeded[1])

        result = await bulk.delete(seeded)

        assert result.failed_ids == {seeded[1]}
        assert [task.id for task in store.tasks] == [seeded[1]]

    async def test_clear_all(self, store, bulk, seeded):
        result = await bulk.clear_all()

        assert sorted(result.succeeded) == sorted(seeded)
        assert store.tasks == []


@pytest.mark.unit
class TestBulkExport:
    """Tests for export through the coordinator."""

    async def test_export_rows_is_read_only(self, backend, bulk, seeded):
        calls_before = list(backend.calls)

        rows = bulk.export_rows([seeded[0], "ghost"])

        assert len(rows) == 1
        assert rows[0][0] == seeded[0]
        assert backend.calls == calls_before

    async def test_export_csv_has_header_and_notifies(self, bulk, seeded, notifier):
        content = bulk.export_csv(seeded)

        parsed = export_service.parse_csv(content)
        assert parsed[0] == export_service.EXPORT_COLUMNS
        assert len(parsed) == 4
        assert notifier.sent[-1] == ("Export Complete!", "Exported 3 selected tasks")

    async def test_export_all_csv(self, bulk, seeded):
        parsed = export_service.parse_csv(bulk.export_all_csv())

        assert parsed[0] == export_service.FULL_EXPORT_COLUMNS
        assert len(parsed) == 4
