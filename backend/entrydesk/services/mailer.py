from __future__ import annotations
from functools import lru_cache
from redis import Redis
from rq import Queue
from entrydesk.config import settings

MAIL_QUEUE = "mail"

@lru_cache
def get_mail_queue() -> Queue:
    return Queue(MAIL_QUEUE, connection=Redis.from_url(settings.redis_url))
