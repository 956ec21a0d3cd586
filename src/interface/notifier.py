"""Best-effort user notifications.

The engine never branches on whether a notification was delivered. Delivery
channels (desktop, push, chat) implement the Notifier protocol.
"""

import logging
from typing import Protocol

from src.core.config import settings


logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Anything that can show a short alert to the user."""

    def notify(self, title: str, body: str) -> None: ...


class LogNotifier:
    """Notifier that writes alerts to the application log."""

    def notify(self, title: str, body: str) -> None:
        logger.info("notification", extra={"title": title, "body": body})


class NullNotifier:
    """Notifier used when notifications are disabled."""

    def notify(self, title: str, body: str) -> None:
        return None


def get_default_notifier() -> Notifier:
    """Return the notifier configured for this process."""
    return LogNotifier() if settings.enable_notifications else NullNotifier()


def notify_safely(notifier: Notifier | None, title: str, body: str) -> None:
    """Send a notification, logging and discarding any delivery failure."""
    if notifier is None:
        return
    try:
        notifier.notify(title, body)
    except Exception as e:
        # Log warning but don't raise - notification failure must not affect state
        logger.warning("Failed to deliver notification '%s': %s", title, e)
