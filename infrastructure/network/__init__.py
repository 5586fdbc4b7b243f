"""
Connectivity observers for the sync queue.

- ReachabilityObserver: debounced base with subscribe/unsubscribe
- ManualNetworkObserver: driven by host UI events
- HttpReachabilityObserver: periodic HTTP probe (httpx)
"""

from infrastructure.network.http_probe import HttpReachabilityObserver
from infrastructure.network.observer import ManualNetworkObserver, ReachabilityObserver

__all__ = [
    "ReachabilityObserver",
    "ManualNetworkObserver",
    "HttpReachabilityObserver",
]
