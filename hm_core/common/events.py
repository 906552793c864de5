# hm_core/common/events.py
from collections import defaultdict
from typing import Any, Callable, Dict, List

from django.db import transaction

Handler = Callable[[Dict[str, Any]], None]

_registry: Dict[str, List[Handler]] = defaultdict(list)


def subscribe(event_name: str):
    """
    Decorator to register an event handler.
    Usage:
        @subscribe("billing.invoice.created")
        def handler(payload): ...
    """
    def _decorator(fn: Handler) -> Handler:
        if fn not in _registry[event_name]:
            _registry[event_name].append(fn)
        return fn
    return _decorator


def publish(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Publish an event to in-process subscribers.
    Keep payloads ID-based to avoid cross-app imports.
    """
    for handler in list(_registry.get(event_name, [])):
        handler(payload)


def publish_on_commit(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Deliver only after the surrounding transaction commits, so subscribers
    never see (or act on) rows that were rolled back.

    robust=True: a failing subscriber is logged by Django and never reaches
    the caller whose work already committed.
    """
    transaction.on_commit(lambda: publish(event_name, payload), robust=True)
