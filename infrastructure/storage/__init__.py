"""
Local persistence for the sync queue.

- RecordQueueStore: QueueStore over any RecordStorage
- SqliteRecordStorage: device-style SQLite file
- JsonFileRecordStorage: browser-style single JSON document
"""

from infrastructure.storage.json_file_storage import JsonFileRecordStorage
from infrastructure.storage.record_queue_store import RecordQueueStore
from infrastructure.storage.sqlite_storage import SqliteRecordStorage

__all__ = [
    "RecordQueueStore",
    "SqliteRecordStorage",
    "JsonFileRecordStorage",
]
