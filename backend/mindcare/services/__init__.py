"""Services module - provides external service integrations."""

from .event_notifier import EventNotifier, get_event_notifier

__all__ = ['EventNotifier', 'get_event_notifier']
