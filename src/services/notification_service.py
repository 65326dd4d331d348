"""Notification subscribers for statistics changes."""

import logging
from collections.abc import Callable

from src.core.events import STATISTICS_CHANGED, EventBus
from src.core.logging import log_with_context
from src.models.service_models import RecomputeResult


logger = logging.getLogger(__name__)


def format_badge_unlocked_message(*, name: str, icon: str, description: str) -> str:
    """Build the user-facing text announcing a newly earned badge."""
    return f"{icon} Badge unlocked: {name}! {description}"


def notify_badge_unlocks(result: RecomputeResult) -> list[str]:
    """Announce every badge unlocked by a recomputation.

    Returns:
        The messages that were emitted, in unlock order
    """
    messages = []
    for badge in result.newly_unlocked:
        message = format_badge_unlocked_message(name=badge.name, icon=badge.icon, description=badge.description)
        log_with_context(
            logger,
            "info",
            message,
            event="badge_unlocked",
            badge_id=str(badge.id),
            unlocked_at=badge.unlocked_at,
        )
        messages.append(message)
    return messages


def register_subscribers(bus: EventBus) -> list[Callable[[], None]]:
    """Attach the notification subscribers to an event bus.

    Returns:
        Unsubscribe callables, one per registration
    """
    return [bus.subscribe(STATISTICS_CHANGED, notify_badge_unlocks)]
