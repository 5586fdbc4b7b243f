"""
Unit tests for the operation registry.

Part of AMA-723: Supabase remote client for the sync queue
"""

import pytest

from infrastructure.remote import OperationRegistry, RemoteOperation, UnknownOperationError, default_registry
from infrastructure.remote.operations import DELETE, INVOKE, PATCH, UPSERT

pytestmark = pytest.mark.unit


class TestDefaultRegistry:
    """Operations recorded by the web and mobile clients."""

    @pytest.mark.parametrize(
        "operation_type,target,action",
        [
            ("create_session", "workout_sessions", UPSERT),
            ("update_session", "workout_sessions", UPSERT),
            ("delete_session", "workout_sessions", DELETE),
            ("update_rating", "workout_sessions", PATCH),
            ("update_set", "set_logs", UPSERT),
            ("delete_set", "set_logs", DELETE),
            ("update_profile", "profiles", UPSERT),
            ("update_gym", "gyms", UPSERT),
            ("update_measurement", "body_measurements", UPSERT),
            ("update_goal", "user_goals", UPSERT),
        ],
    )
    def test_known_operations(self, operation_type, target, action):
        operation = default_registry().resolve(operation_type)
        assert operation.target == target
        assert operation.action == action

    def test_session_strips_local_only_fields(self):
        operation = default_registry().resolve("create_session")
        body = operation.sanitize({"id": "s1", "sync_status": "local_only", "completed_at": None})
        assert body == {"id": "s1", "completed_at": None}

    @pytest.mark.parametrize("operation_type", ["create_session", "update_session"])
    def test_in_progress_session_is_synced(self, operation_type):
        operation = default_registry().resolve(operation_type)
        assert operation.wants_sync({"id": "s1", "completed_at": None})
        assert operation.wants_sync({"id": "s1", "completed_at": "2026-03-01T12:00:00Z"})

    def test_custom_predicate_can_hold_back_items(self):
        operation = RemoteOperation("drafts", UPSERT, should_sync=lambda payload: payload.get("published", False))
        assert not operation.wants_sync({"id": "d1"})
        assert operation.wants_sync({"id": "d1", "published": True})

    def test_sets_always_sync(self):
        assert default_registry().resolve("update_set").wants_sync({"id": "x"})


class TestDynamicResolution:
    """'<table>.<action>' and 'invoke:<function>' resolve without registration."""

    def test_table_action_form(self):
        operation = OperationRegistry().resolve("body_measurements.delete")
        assert operation == RemoteOperation("body_measurements", DELETE)

    def test_invoke_form(self):
        operation = OperationRegistry().resolve("invoke:recalculate-streaks")
        assert operation.target == "recalculate-streaks"
        assert operation.action == INVOKE

    @pytest.mark.parametrize("operation_type", ["mystery", "table.explode", "invoke:", ".upsert"])
    def test_unknown_raises(self, operation_type):
        registry = OperationRegistry()
        with pytest.raises(UnknownOperationError):
            registry.resolve(operation_type)
        assert operation_type not in registry

    def test_register_overrides(self):
        registry = default_registry()
        registry.register("update_set", RemoteOperation("set_logs_v2"))
        assert registry.resolve("update_set").target == "set_logs_v2"
        assert "update_set" in registry.registered


class TestRemoteOperationValidation:
    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError):
            RemoteOperation("profiles", "merge")

    def test_empty_target_rejected(self):
        with pytest.raises(ValueError):
            RemoteOperation("")
