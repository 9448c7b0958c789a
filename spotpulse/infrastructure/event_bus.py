"""
SpotPulse – Event Bus (asyncio.Queue fan-out)
===============================================
Desacopla al productor del feed del pipeline, y al motor de la entrega
de notificaciones.

Tópicos:
  ┌──────────────┐          ┌───────────┐
  │ Binance feed │──feed───▸│           │──▸ ProcessUpdateUseCase
  └──────────────┘          │ Event Bus │
  ┌──────────────┐          │ (fan-out) │
  │ Ledger/motor │─outcome─▸│           │──▸ NotificationDispatcher
  └──────────────┘          └───────────┘

PUBLICAR NUNCA BLOQUEA:
  Cada suscriptor tiene su propia cola acotada. Si se llena, se descarta
  el evento MÁS ANTIGUO de esa cola (drop-oldest) y se cuenta.

  Un tópico sin suscriptores descarta el evento en silencio: los
  consumidores deben suscribirse ANTES de que arranquen los productores.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict

from spotpulse.shared.logging.logger import get_logger

logger = get_logger("event_bus")

FEED_TOPIC = "feed"
OUTCOME_TOPIC = "outcome"


class EventBus:
    """Fan-out event bus basado en asyncio.Queue."""

    def __init__(self, max_queue_size: int = 10_000) -> None:
        self._max_queue_size = max_queue_size
        # topic → lista de (queue, nombre_consumidor)
        self._subscribers: Dict[str, list[tuple[asyncio.Queue, str]]] = {}
        self._lock = asyncio.Lock()
        self._published: Dict[str, int] = {}
        self._dropped: Dict[str, int] = {}

    async def subscribe(self, topic: str, consumer_name: str) -> asyncio.Queue:
        """Registrar un consumidor y devolver su cola exclusiva."""
        async with self._lock:
            queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
            self._subscribers.setdefault(topic, []).append((queue, consumer_name))
            logger.info(
                "Consumidor '%s' suscrito a '%s' (max_queue=%d)",
                consumer_name, topic, self._max_queue_size,
            )
            return queue

    async def publish(self, topic: str, data: Any) -> None:
        """Encolar `data` en cada suscriptor del tópico (drop-oldest)."""
        self._published[topic] = self._published.get(topic, 0) + 1
        for queue, consumer_name in self._subscribers.get(topic, []):
            if queue.full():
                try:
                    queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
                else:
                    self._dropped[topic] = self._dropped.get(topic, 0) + 1
                    logger.warning(
                        "Cola llena para '%s' en '%s' – evento antiguo descartado",
                        consumer_name, topic,
                    )
            queue.put_nowait(data)

    async def unsubscribe_all(self, topic: str | None = None) -> None:
        """Cleanup al shutdown."""
        async with self._lock:
            if topic:
                self._subscribers.pop(topic, None)
            else:
                self._subscribers.clear()
            logger.info("Suscriptores eliminados (%s)", topic or "todos")

    @property
    def subscriber_count(self) -> int:
        return sum(len(subs) for subs in self._subscribers.values())

    @property
    def stats(self) -> dict:
        return {
            "subscribers": {
                topic: [name for _, name in subs]
                for topic, subs in self._subscribers.items()
            },
            "published": dict(self._published),
            "dropped": dict(self._dropped),
            "pending": {
                topic: sum(q.qsize() for q, _ in subs)
                for topic, subs in self._subscribers.items()
            },
        }
