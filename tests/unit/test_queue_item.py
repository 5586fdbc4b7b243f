"""
Unit tests for the sync queue domain models.

Part of AMA-720: Offline-first sync queue

Tests for:
- QueueItem validation and bookkeeping
- SyncStatus snapshot and serialization
- Error taxonomy messages
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from domain.errors import (
    AbandonedError,
    ReachabilityUncertain,
    SessionMismatchError,
    SyncQueueError,
    TransientRemoteError,
)
from domain.models import ProcessorState, QueueItem, SyncStatus

pytestmark = pytest.mark.unit


# =============================================================================
# QueueItem
# =============================================================================


class TestQueueItemValidation:
    """Tests for QueueItem field validation."""

    def test_minimal_item_defaults(self):
        item = QueueItem(id=1, operation_type="update_set", payload={"id": "set-1"})

        assert item.attempt_count == 0
        assert item.last_error is None
        assert item.last_attempt_at is None
        assert item.user_id is None
        assert item.created_at.tzinfo is not None

    def test_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            QueueItem(id=0, operation_type="update_set")

    def test_blank_operation_type_rejected(self):
        with pytest.raises(ValidationError):
            QueueItem(id=1, operation_type="   ")

    def test_operation_type_is_stripped(self):
        item = QueueItem(id=1, operation_type="  update_set ")
        assert item.operation_type == "update_set"

    def test_non_json_payload_rejected(self):
        with pytest.raises(ValidationError, match="JSON-serializable"):
            QueueItem(id=1, operation_type="update_set", payload={"at": object()})

    def test_item_is_immutable(self):
        item = QueueItem(id=1, operation_type="update_set")
        with pytest.raises(ValidationError):
            item.attempt_count = 3

    def test_json_round_trip_keeps_timestamps(self):
        item = QueueItem(id=7, operation_type="update_profile", payload={"id": "p1"}, user_id="u1")
        restored = QueueItem.model_validate_json(item.model_dump_json())
        assert restored == item


class TestQueueItemBookkeeping:
    """Tests for with_failure(), is_exhausted(), age_seconds(), belongs_to()."""

    def test_with_failure_increments_attempts(self):
        item = QueueItem(id=1, operation_type="update_set")
        at = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

        failed = item.with_failure("503 Service Unavailable", at=at)

        assert failed.attempt_count == 1
        assert failed.last_error == "503 Service Unavailable"
        assert failed.last_attempt_at == at
        # Original untouched
        assert item.attempt_count == 0

    def test_is_exhausted_at_ceiling(self):
        item = QueueItem(id=1, operation_type="update_set", attempt_count=4)
        assert not item.is_exhausted(5)
        assert item.with_failure("boom").is_exhausted(5)

    def test_age_seconds(self):
        created = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        item = QueueItem(id=1, operation_type="update_set", created_at=created)
        assert item.age_seconds(created + timedelta(seconds=90)) == 90

    def test_unowned_item_belongs_to_anyone(self):
        item = QueueItem(id=1, operation_type="update_set")
        assert item.belongs_to("user-1")
        assert item.belongs_to(None)

    def test_owned_item_belongs_only_to_owner(self):
        item = QueueItem(id=1, operation_type="update_set", user_id="user-1")
        assert item.belongs_to("user-1")
        assert not item.belongs_to("user-2")
        assert not item.belongs_to(None)


# =============================================================================
# SyncStatus
# =============================================================================


class TestSyncStatus:
    """Tests for the published status snapshot."""

    def test_defaults(self):
        status = SyncStatus()
        assert status.state == ProcessorState.IDLE
        assert status.queue_length == 0
        assert status.last_error is None
        assert not status.is_syncing

    def test_is_syncing_while_draining(self):
        assert SyncStatus(state=ProcessorState.DRAINING).is_syncing

    def test_evolve_returns_new_snapshot(self):
        status = SyncStatus(queue_length=3)
        evolved = status.evolve(queue_length=2, is_online=True)
        assert evolved.queue_length == 2
        assert evolved.is_online is True
        assert status.queue_length == 3

    def test_to_dict_serializes_error_and_dates(self):
        synced = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        status = SyncStatus(
            state=ProcessorState.BACKOFF,
            queue_length=2,
            last_error=TransientRemoteError("HTTP 503", status_code=503),
            is_online=True,
            last_synced_at=synced,
        )

        data = status.to_dict()

        assert data["state"] == "backoff"
        assert data["queue_length"] == 2
        assert data["last_error"] == "HTTP 503"
        assert data["last_error_type"] == "TransientRemoteError"
        assert data["last_synced_at"] == synced.isoformat()
        assert data["backoff_until"] is None


# =============================================================================
# Errors
# =============================================================================


class TestErrors:
    """Tests for the error taxonomy."""

    def test_reachability_uncertain_is_transient(self):
        error = ReachabilityUncertain("Backend unreachable")
        assert isinstance(error, TransientRemoteError)
        assert isinstance(error, SyncQueueError)

    def test_transient_error_keeps_status_code(self):
        error = TransientRemoteError("HTTP 502", status_code=502)
        assert error.reason == "HTTP 502"
        assert error.status_code == 502

    def test_abandoned_error_message_includes_cause(self):
        item = QueueItem(id=42, operation_type="update_set", attempt_count=5)
        cause = TransientRemoteError("HTTP 400")

        error = AbandonedError(item, cause)

        assert str(error) == "Abandoned update_set item 42 after 5 attempts: HTTP 400"
        assert error.item is item
        assert error.cause is cause

    def test_session_mismatch_error(self):
        item = QueueItem(id=3, operation_type="update_set", user_id="user-1")
        error = SessionMismatchError(item, "user-2")
        assert error.session_user_id == "user-2"
        assert "Item 3" in str(error)
