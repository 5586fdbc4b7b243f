"""
Operation registry for queued mutations.

Part of AMA-723: Supabase remote client for the sync queue

Maps an operation tag (QueueItem.operation_type) to the remote call that
applies it. Besides the registered tags, two dynamic forms resolve without
registration:

    "<table>.<action>"     e.g. "body_measurements.upsert"
    "invoke:<function>"    e.g. "invoke:recalculate-streaks"
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

UPSERT = "upsert"
CREATE = "create"
UPDATE = "update"
PATCH = "patch"
DELETE = "delete"
INVOKE = "invoke"

TABLE_ACTIONS = (UPSERT, CREATE, UPDATE, PATCH, DELETE)
ACTIONS = TABLE_ACTIONS + (INVOKE,)

INVOKE_PREFIX = "invoke:"


class UnknownOperationError(LookupError):
    """No remote operation is registered for the tag."""


@dataclass(frozen=True)
class RemoteOperation:
    """
    How to apply one kind of mutation remotely.

    Attributes:
        target: Table name, or Edge Function name for INVOKE
        action: One of ACTIONS
        on_conflict: Conflict column(s) for upserts
        local_only_fields: Payload keys that exist only in the local schema
        should_sync: Optional predicate; False acknowledges the item without
            a remote call
    """

    target: str
    action: str = UPSERT
    on_conflict: str = "id"
    local_only_fields: Tuple[str, ...] = ()
    should_sync: Optional[Callable[[Dict[str, Any]], bool]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.action not in ACTIONS:
            raise ValueError(f"Unknown action '{self.action}'. Must be one of: {ACTIONS}")
        if not self.target:
            raise ValueError("target must not be empty")

    def sanitize(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Drop fields that don't exist in the remote schema."""
        return {k: v for k, v in payload.items() if k not in self.local_only_fields}

    def wants_sync(self, payload: Dict[str, Any]) -> bool:
        return self.should_sync is None or bool(self.should_sync(payload))


class OperationRegistry:
    """Lookup table from operation tag to RemoteOperation."""

    def __init__(self, operations: Optional[Dict[str, RemoteOperation]] = None):
        self._operations: Dict[str, RemoteOperation] = dict(operations or {})

    def register(self, operation_type: str, operation: RemoteOperation) -> None:
        self._operations[operation_type] = operation

    def __contains__(self, operation_type: str) -> bool:
        try:
            self.resolve(operation_type)
        except UnknownOperationError:
            return False
        return True

    @property
    def registered(self) -> Iterable[str]:
        return sorted(self._operations)

    def resolve(self, operation_type: str) -> RemoteOperation:
        """
        Find the remote operation for a tag.

        Raises:
            UnknownOperationError: If the tag is neither registered nor a
                dynamic "<table>.<action>" / "invoke:<function>" form
        """
        operation = self._operations.get(operation_type)
        if operation is not None:
            return operation

        if operation_type.startswith(INVOKE_PREFIX):
            function_name = operation_type[len(INVOKE_PREFIX):]
            if function_name:
                return RemoteOperation(target=function_name, action=INVOKE)

        table, sep, action = operation_type.rpartition(".")
        if sep and table and action in TABLE_ACTIONS:
            return RemoteOperation(target=table, action=action)

        raise UnknownOperationError(f"No remote operation registered for '{operation_type}'")


def default_registry() -> OperationRegistry:
    """Operations recorded by the web and mobile clients."""
    session_fields = ("sync_status",)
    return OperationRegistry({
        # Workout sessions, in progress or not: set_logs rows reference them
        "create_session": RemoteOperation("workout_sessions", UPSERT, local_only_fields=session_fields),
        "update_session": RemoteOperation("workout_sessions", UPSERT, local_only_fields=session_fields),
        "delete_session": RemoteOperation("workout_sessions", DELETE),
        "update_rating": RemoteOperation("workout_sessions", PATCH),
        # Set logs
        "update_set": RemoteOperation("set_logs", UPSERT),
        "delete_set": RemoteOperation("set_logs", DELETE),
        # Profile and account data
        "update_profile": RemoteOperation("profiles", UPSERT),
        "update_gym": RemoteOperation("gyms", UPSERT),
        "delete_gym": RemoteOperation("gyms", DELETE),
        "update_measurement": RemoteOperation("body_measurements", UPSERT),
        "update_goal": RemoteOperation("user_goals", UPSERT),
        "update_t_path": RemoteOperation("t_paths", UPSERT),
    })
