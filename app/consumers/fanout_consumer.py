"""
Fanout subscribers. Every broadcast reaches all three queues, and each queue keeps
its own ledger entry, so the same message ID is handled once per queue.
"""

import logging

from app.consumers.idempotent_handler import idempotent_consumer
from app.core.config import FANOUT_EMAIL_QUEUE, FANOUT_PUSH_QUEUE, FANOUT_SMS_QUEUE
from app.schemas.event_message import EventMessage

log = logging.getLogger("fanout_consumer")


async def send_email(message: EventMessage):
    log.info(f"EMAIL -> To: users@example.com | Subject: {message.type} | Body: {message.content}")


async def send_sms(message: EventMessage):
    log.info(f"SMS -> To: +1234567890 | Message: {message.content}")


async def send_push_notification(message: EventMessage):
    log.info(f"PUSH -> Title: {message.type} | Body: {message.content}")


@idempotent_consumer(FANOUT_EMAIL_QUEUE)
async def handle_email_notification(message: EventMessage):
    """Subscriber 1 - Email Notification Service"""
    await send_email(message)
    log.info(f"Email sent successfully for message: {message.id}")


@idempotent_consumer(FANOUT_SMS_QUEUE)
async def handle_sms_notification(message: EventMessage):
    """Subscriber 2 - SMS Notification Service"""
    await send_sms(message)
    log.info(f"SMS sent successfully for message: {message.id}")


@idempotent_consumer(FANOUT_PUSH_QUEUE)
async def handle_push_notification(message: EventMessage):
    """Subscriber 3 - Push Notification Service"""
    await send_push_notification(message)
    log.info(f"Push notification sent successfully for message: {message.id}")


FANOUT_CONSUMERS = [
    handle_email_notification,
    handle_sms_notification,
    handle_push_notification,
]
