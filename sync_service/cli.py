"""
Command-line tools for inspecting and driving the local sync queue.

Part of AMA-723: Local HTTP surface for the UI adapter

Usage:
    python -m sync_service.cli status
    python -m sync_service.cli list --limit 20
    python -m sync_service.cli enqueue update_set '{"id": "set-1", "reps": 8}'
    python -m sync_service.cli drain --user-id user-1 --access-token "$JWT"
    python -m sync_service.cli reset
    python -m sync_service.cli serve --port 8010
"""
import argparse
import asyncio
import json
import sys
from typing import List, Optional

from domain.errors import SyncQueueError
from infrastructure.network import ManualNetworkObserver
from sync_service.logging_config import setup_logging
from sync_service.settings import Settings, get_settings
from sync_service.wiring import ConfigurationError, build_queue_store, build_sync_manager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and drain the offline sync queue")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the local HTTP service")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8010)

    subparsers.add_parser("status", help="Pending count and age of the oldest item")

    list_cmd = subparsers.add_parser("list", help="Print pending items as JSON")
    list_cmd.add_argument("--limit", type=int, default=50)

    enqueue = subparsers.add_parser("enqueue", help="Queue a mutation")
    enqueue.add_argument("operation_type")
    enqueue.add_argument("payload", help="JSON object")
    enqueue.add_argument("--user-id", default=None)

    subparsers.add_parser("reset", help="Purge every queued mutation")

    drain = subparsers.add_parser("drain", help="Run one drain pass, assuming the network is online")
    drain.add_argument("--user-id", required=True)
    drain.add_argument("--access-token", default=None)

    return parser


async def _status(settings: Settings) -> dict:
    async with build_queue_store(settings) as store:
        count = await store.count()
        oldest = await store.peek_batch(1)
    return {
        "count": count,
        "oldest_id": oldest[0].id if oldest else None,
        "oldest_age_seconds": round(oldest[0].age_seconds(), 1) if oldest else None,
    }


async def _list(settings: Settings, limit: int) -> list:
    async with build_queue_store(settings) as store:
        items = await store.peek_batch(limit)
    return [item.model_dump(mode="json") for item in items]


async def _enqueue(settings: Settings, operation_type: str, payload: dict, user_id: Optional[str]) -> dict:
    async with build_queue_store(settings) as store:
        item = await store.enqueue(operation_type, payload, user_id=user_id)
    return item.model_dump(mode="json")


async def _reset(settings: Settings) -> dict:
    async with build_queue_store(settings) as store:
        removed = await store.count()
        await store.reset()
    return {"removed": removed}


async def _drain(settings: Settings, user_id: str, access_token: Optional[str]) -> dict:
    observer = ManualNetworkObserver(initial=True)
    manager = build_sync_manager(settings, observer=observer)
    async with manager:
        # begin_session runs the first pass
        await manager.begin_session(user_id, access_token)
        await manager.processor.wait_until_idle()
        return manager.status.to_dict()


def _parse_payload(raw: str) -> dict:
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("payload must be a JSON object")
    return payload


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    try:
        if args.command == "serve":
            import uvicorn

            uvicorn.run("sync_service.main:create_app", factory=True, host=args.host, port=args.port)
            return 0
        if args.command == "status":
            result = asyncio.run(_status(settings))
        elif args.command == "list":
            result = asyncio.run(_list(settings, args.limit))
        elif args.command == "enqueue":
            result = asyncio.run(
                _enqueue(settings, args.operation_type, _parse_payload(args.payload), args.user_id)
            )
        elif args.command == "reset":
            result = asyncio.run(_reset(settings))
        else:
            result = asyncio.run(_drain(settings, args.user_id, args.access_token))
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON payload: {e}", file=sys.stderr)
        return 1
    except (SyncQueueError, ConfigurationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
