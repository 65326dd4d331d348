from src.services import (
    achievement_engine,
    notification_service,
    stats_service,
    task_service,
)


__all__ = [
    "achievement_engine",
    "notification_service",
    "stats_service",
    "task_service",
]
