"""
Application Layer for the offline sync queue.

Part of AMA-720: Offline-first sync queue

This package contains:
- ports/: Abstract interfaces (queue store, record storage, network
  observer, remote API client)
- services/: The sync queue processor and the manager that composes it
"""
