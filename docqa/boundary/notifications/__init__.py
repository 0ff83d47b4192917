"""Processing notifications."""

from docqa.boundary.notifications.notifier import ProcessingEvent, ProcessingNotifier

__all__ = ["ProcessingEvent", "ProcessingNotifier"]
