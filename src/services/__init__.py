from src.services import (
    audit_log_service,
    notification_service,
    notification_store,
)


__all__ = [
    "audit_log_service",
    "notification_service",
    "notification_store",
]
