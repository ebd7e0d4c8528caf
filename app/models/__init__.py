# app/models/__init__.py
from .processed_message import ProcessedMessage, ProcessingStatus

# Export all models
__all__ = [
    "ProcessedMessage",
    "ProcessingStatus",
]
