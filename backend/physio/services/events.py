"""
backend/physio/services/events.py

Event emitter: pushes events to Redis queues for consumption by workers.

Two queues:
- events:p2p: instant delivery (notifications to specific users)
- emails:outbox: e-mails picked up by the mail worker
"""

import json
import time
import logging

from redis import Redis

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"
EMAIL_QUEUE = "emails:outbox"


def emit_event(event_type: str, payload: dict, redis: Redis | None = None) -> bool:
    """
    Emit a p2p event (instant delivery).

    Pushed to Redis list `events:p2p` for the consumer loop.
    Returns False when the push failed (already logged).
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        (redis or redis_client).rpush(P2P_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
        return True
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
        return False


def enqueue_email(message: dict, redis: Redis | None = None) -> None:
    """
    Push an e-mail job to `emails:outbox`.

    Raises on Redis failure; the mailer decides how to report it.
    """
    job = {
        **message,
        "ts": int(time.time()),
    }
    (redis or redis_client).rpush(EMAIL_QUEUE, json.dumps(job, default=str))
    logger.info(f"E-mail queued: {message.get('kind')} → {EMAIL_QUEUE}")
