from enum import Enum
from tortoise import fields, models
import uuid


class ProcessingStatus(str, Enum):
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"


class ProcessedMessage(models.Model):
    """
    Idempotency ledger. One row per (message_id, queue_name): its presence is the
    gate that stops a queue's handler from running the same message twice.
    Rows are never updated in place; a status change is delete-then-insert.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    message_id = fields.CharField(max_length=100) # Unique only together with queue_name
    queue_name = fields.CharField(max_length=100)
    processed_at = fields.DatetimeField() # Set explicitly at write time, basis for retention
    status = fields.CharEnumField(ProcessingStatus, max_length=50, default=ProcessingStatus.PROCESSED)
    message_type = fields.CharField(max_length=500, null=True) # Audit only, never used for dedup

    class Meta:
        table = "processed_messages"
        unique_together = (("message_id", "queue_name"),)
        indexes = [
            ("processed_at",),  # Retention sweeps
            ("queue_name",),    # Per-queue counts and listing
        ]

    def __str__(self):
        return f"{self.message_id}@{self.queue_name} [{self.status}]"
