from src.services import (
    analytics_service,
    classification_service,
    export_service,
)


__all__ = [
    "analytics_service",
    "classification_service",
    "export_service",
]
