"""
Single-flight request queue.
"""

from deck_orchestrator.queue.request_queue import Handler, QueuedItem, RequestQueue

__all__ = ["Handler", "QueuedItem", "RequestQueue"]
