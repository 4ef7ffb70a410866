"""Tests for batched permission queries."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from rbaccore import BackendUnavailable, EntityId, PermissionBatcher, PermissionRow

A = EntityId.parse("org.foo:type=Bar,name=A")
B = EntityId.parse("org.foo:type=Bar,name=B")


class TestPermissionRow:
    """Tests for PermissionRow."""

    def test_backend_column_names(self) -> None:
        """Rows validate from the backend's column names."""
        row = PermissionRow.model_validate({"ObjectName": "d:type=T", "Method": "op()", "CanInvoke": True})
        assert row.entity == "d:type=T"
        assert row.operation == "op()"
        assert row.allowed is True

    def test_field_names(self) -> None:
        """Rows can be built from field names."""
        row = PermissionRow(entity="d:type=T", can_invoke=False)
        assert row.operation is None
        assert row.allowed is False

    def test_absent_flag_denies(self) -> None:
        """A row without CanInvoke is a deny."""
        assert PermissionRow.model_validate({"ObjectName": "d:type=T"}).allowed is False


class TestCheckEntities:
    """Tests for PermissionBatcher.check_entities."""

    def test_single_backend_call_keyed_by_identifier(self) -> None:
        """One call is made, keyed by identifier string."""
        backend = MagicMock()
        backend.can_invoke.return_value = [
            {"ObjectName": str(A), "CanInvoke": True},
            {"ObjectName": str(B), "CanInvoke": False},
        ]
        results = PermissionBatcher(backend).check_entities({A: [], B: []})
        backend.can_invoke.assert_called_once_with({str(A): [], str(B): []})
        assert results == {A: True, B: False}

    def test_missing_row_denies(self) -> None:
        """Entities without a row are denied."""
        backend = MagicMock()
        backend.can_invoke.return_value = [{"ObjectName": str(A), "CanInvoke": True}]
        assert PermissionBatcher(backend).check_entities({A: [], B: []}) == {A: True, B: False}

    def test_null_flag_denies(self) -> None:
        """A null CanInvoke is a deny."""
        backend = MagicMock()
        backend.can_invoke.return_value = [{"ObjectName": str(A), "CanInvoke": None}]
        assert PermissionBatcher(backend).check_entities({A: []}) == {A: False}

    def test_accepts_row_models(self) -> None:
        """PermissionRow instances are accepted as-is."""
        backend = MagicMock()
        backend.can_invoke.return_value = [PermissionRow(entity=str(A), can_invoke=True)]
        assert PermissionBatcher(backend).check_entities({A: []}) == {A: True}

    def test_unrequested_and_unparsable_rows_ignored(self) -> None:
        """Rows for other or unparsable entities are ignored."""
        backend = MagicMock()
        backend.can_invoke.return_value = [
            {"ObjectName": str(B), "CanInvoke": True},
            {"ObjectName": "garbage", "CanInvoke": True},
        ]
        assert PermissionBatcher(backend).check_entities({A: []}) == {A: False}

    def test_empty_query_still_sent(self) -> None:
        """An empty batch is still sent to the backend."""
        backend = MagicMock()
        backend.can_invoke.return_value = []
        assert PermissionBatcher(backend).check_entities({}) == {}
        backend.can_invoke.assert_called_once_with({})

    def test_backend_failure(self) -> None:
        """Backend errors surface as BackendUnavailable."""
        backend = MagicMock()
        backend.can_invoke.side_effect = ConnectionError("refused")
        with pytest.raises(BackendUnavailable) as exc_info:
            PermissionBatcher(backend).check_entities({A: []})
        assert "refused" in exc_info.value.message
        assert exc_info.value.details["entities"] == 1

    def test_missing_backend(self) -> None:
        """No backend raises BackendUnavailable."""
        with pytest.raises(BackendUnavailable):
            PermissionBatcher(None).check_entities({A: []})


class TestCheckOperations:
    """Tests for PermissionBatcher.check_operations."""

    def test_results_per_signature(self) -> None:
        """Each signature gets its own result."""
        backend = MagicMock()
        backend.can_invoke.return_value = [
            {"ObjectName": str(A), "Method": "start()", "CanInvoke": True},
            {"ObjectName": str(A), "Method": "setLevel(int)", "CanInvoke": False},
            {"ObjectName": str(B), "Method": "start()", "CanInvoke": True},
        ]
        results = PermissionBatcher(backend).check_operations({A: ["start()", "setLevel(int)"], B: ["start()"]})
        backend.can_invoke.assert_called_once_with({str(A): ["start()", "setLevel(int)"], str(B): ["start()"]})
        assert results == {
            (A, "start()"): True,
            (A, "setLevel(int)"): False,
            (B, "start()"): True,
        }

    def test_missing_row_denies(self) -> None:
        """Signatures without a row are denied."""
        backend = MagicMock()
        backend.can_invoke.return_value = []
        assert PermissionBatcher(backend).check_operations({A: ["start()"]}) == {(A, "start()"): False}

    def test_unrequested_operation_ignored(self) -> None:
        """Rows for unrequested operations are ignored."""
        backend = MagicMock()
        backend.can_invoke.return_value = [
            {"ObjectName": str(A), "Method": "stop()", "CanInvoke": True},
            {"ObjectName": str(A), "CanInvoke": True},
        ]
        assert PermissionBatcher(backend).check_operations({A: ["start()"]}) == {(A, "start()"): False}

    def test_backend_failure(self) -> None:
        """Backend errors surface as BackendUnavailable."""
        backend = MagicMock()
        backend.can_invoke.side_effect = RuntimeError("boom")
        with pytest.raises(BackendUnavailable):
            PermissionBatcher(backend).check_operations({A: ["start()"]})
