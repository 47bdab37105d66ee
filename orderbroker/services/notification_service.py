# orderbroker/services/notification_service.py
import json
import threading
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Callable, Deque, List

import redis

from orderbroker.data.database import SessionLocal
from orderbroker.repos.order_repo import OrderRepo
from orderbroker.services.message_templates import template_for
from orderbroker.services.whatsapp_client import WhatsAppClient
from orderbroker.utils.retry import redis_retry
from orderbroker.utils.settings import (
    NOTIFICATION_DELAY_SECONDS,
    NOTIFICATION_MAX_ATTEMPTS,
    NOTIFICATION_QUEUE_BACKEND,
    NOTIFICATION_QUEUE_KEY,
    REDIS_URL,
)
from orderbroker.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class NotificationJob:
    order_id: int
    retry_count: int = 0


class InMemoryJobStore:
    """FIFO w pamieci procesu. Wystarcza dla jednej instancji."""

    def __init__(self):
        self._jobs: Deque[NotificationJob] = deque()
        self._lock = threading.Lock()

    def push(self, job: NotificationJob) -> None:
        with self._lock:
            self._jobs.append(job)

    def pop(self) -> NotificationJob | None:
        with self._lock:
            return self._jobs.popleft() if self._jobs else None

    def snapshot(self) -> List[NotificationJob]:
        with self._lock:
            return list(self._jobs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)


class RedisJobStore:
    """
    FIFO na liscie redisa (RPUSH / LPOP), przezywa restart procesu
    i moze byc wspoldzielona przez kilka instancji.
    """

    def __init__(self, url: str | None = None, key: str | None = None, client: redis.Redis | None = None):
        self.key = key or NOTIFICATION_QUEUE_KEY
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)

    @redis_retry()
    def push(self, job: NotificationJob) -> None:
        self.redis.rpush(self.key, json.dumps(asdict(job)))

    @redis_retry()
    def pop(self) -> NotificationJob | None:
        raw = self.redis.lpop(self.key)
        if raw is None:
            return None
        return NotificationJob(**json.loads(raw))

    @redis_retry()
    def snapshot(self) -> List[NotificationJob]:
        return [NotificationJob(**json.loads(raw)) for raw in self.redis.lrange(self.key, 0, -1)]

    @redis_retry()
    def __len__(self) -> int:
        return self.redis.llen(self.key)


class OrderNotifier:
    """
    Wysyla jedna wiadomosc dla zamowienia. Zamowienie i wlasciciel sa
    pobierane w momencie wysylki, nie w momencie dodania do kolejki.
    """

    def __init__(self, client: WhatsAppClient | None = None, session_factory: Callable = SessionLocal):
        self.client = client or WhatsAppClient()
        self.session_factory = session_factory

    def __call__(self, order_id: int) -> bool:
        db = self.session_factory()
        try:
            order = OrderRepo(db).get_order_with_owner(order_id)
            if not order or not order.user:
                logger.info(f"[NOTIFICATION] Order {order_id} not found, skipping")
                return False

            template = template_for(order.status)
            if not template:
                # status zmienil sie zanim job doszedl do kolejki
                logger.info(f"[NOTIFICATION] No template for order {order_id} status {order.status}, skipping")
                return False

            components = template.components(order, datetime.now(timezone.utc))
        finally:
            db.close()

        self.client.send_template(template.name, components)
        logger.info(f"[NOTIFICATION] Sent {template.name} for order {order_id}")
        return True


class NotificationQueue:
    """
    Kolejka powiadomien z jednym konsumentem.

    - enqueue tylko dopisuje job i budzi watek, zadnego I/O do providera
    - konsument bierze jeden job na raz, po kazdej probie czeka delay_seconds
    - blad: job wraca na koniec kolejki z retry_count + 1,
      po max_attempts probach jest porzucany (tylko log)
    """

    def __init__(
        self,
        sender: Callable[[int], object],
        store: InMemoryJobStore | RedisJobStore | None = None,
        max_attempts: int = NOTIFICATION_MAX_ATTEMPTS,
        delay_seconds: float = NOTIFICATION_DELAY_SECONDS,
        idle_poll_seconds: float = 1.0,
    ):
        self.sender = sender
        self.store = store if store is not None else InMemoryJobStore()
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.idle_poll_seconds = idle_poll_seconds

        self._stop = threading.Event()
        self._wakeup = threading.Event()
        self._thread: threading.Thread | None = None

    def enqueue(self, order_id: int) -> None:
        self.store.push(NotificationJob(order_id=order_id))
        self._wakeup.set()
        logger.info(f"[NOTIFICATION] Queued order {order_id}")

    def pending(self) -> List[NotificationJob]:
        return self.store.snapshot()

    def process_next(self) -> bool:
        """Jedna proba wysylki. Zwraca False gdy kolejka jest pusta."""
        job = self.store.pop()
        if job is None:
            return False

        try:
            self.sender(job.order_id)
        except Exception as e:
            attempts = job.retry_count + 1
            logger.error(f"Failed to send WhatsApp message for order {job.order_id} (attempt {attempts}): {e}")
            if attempts < self.max_attempts:
                self.store.push(NotificationJob(order_id=job.order_id, retry_count=attempts))
            else:
                logger.error(
                    f"Dropping WhatsApp message for order {job.order_id} after {attempts} attempts"
                )
        return True

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="notification-queue", daemon=True)
        self._thread.start()
        logger.info("Notification queue started")

    def stop(self, timeout: float | None = 10.0) -> None:
        self._stop.set()
        self._wakeup.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Notification queue stopped")

    def _run(self) -> None:
        while not self._stop.is_set():
            self._wakeup.clear()
            try:
                processed = self.process_next()
            except redis.RedisError as e:
                logger.error(f"Notification store unavailable: {e}")
                processed = False
            except Exception:
                # np. uszkodzony wpis w redisie, watek konsumenta musi zyc dalej
                logger.exception("Notification consumer error")
                processed = False

            if processed:
                # limit wysylki do providera
                self._stop.wait(self.delay_seconds)
            else:
                self._wakeup.wait(self.idle_poll_seconds)


def build_notification_queue() -> NotificationQueue:
    if NOTIFICATION_QUEUE_BACKEND == "redis":
        store = RedisJobStore()
    else:
        store = InMemoryJobStore()
    return NotificationQueue(sender=OrderNotifier(), store=store)
