"""
SpotPulse – Notification Dispatcher
=====================================
Puente entre el motor y el canal de notificación.

  Motor ──publish(event)──▸ EventBus[outcome] ──▸ loop ──▸ notifier.send(text)

- publish() encola y vuelve: el motor NUNCA espera a la entrega.
- Un fallo de entrega se registra y se cuenta; jamás se propaga al motor.
- Guarda los últimos N outcomes para la API.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Optional

from spotpulse.application.ports.notifier import INotifier, IOutcomePublisher
from spotpulse.domain.events.domain_events import DomainEvent
from spotpulse.infrastructure.event_bus import OUTCOME_TOPIC, EventBus
from spotpulse.shared.logging.logger import get_logger

logger = get_logger("notification_dispatcher")


class NotificationDispatcher(IOutcomePublisher):

    def __init__(
        self,
        event_bus: EventBus,
        notifier: INotifier,
        label: str = "",
        history: int = 200,
    ) -> None:
        self._event_bus = event_bus
        self._notifier = notifier
        self._label = label
        self._history: deque[DomainEvent] = deque(maxlen=history)

        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._delivered = 0
        self._failed = 0

    # ──────────────────────── Lado del motor ─────────────────────────────

    async def publish(self, event: DomainEvent) -> None:
        self._history.append(event)
        await self._event_bus.publish(OUTCOME_TOPIC, event)

    def recent(self, limit: int = 50) -> list[dict]:
        """Outcomes más recientes primero."""
        events = list(self._history)[-limit:] if limit > 0 else []
        return [e.to_dict() for e in reversed(events)]

    # ──────────────────────── Lifecycle ──────────────────────────────────

    async def start(self) -> None:
        """Suscribirse y lanzar el loop de entrega."""
        if self._task is not None:
            return
        self._queue = await self._event_bus.subscribe(OUTCOME_TOPIC, "notification_dispatcher")
        self._task = asyncio.create_task(self._run(), name="notification-dispatcher")
        logger.info("NotificationDispatcher iniciado")

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info(
            "NotificationDispatcher detenido (entregados=%d, fallidos=%d)",
            self._delivered, self._failed,
        )

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            await self.deliver(event)

    async def deliver(self, event: DomainEvent) -> bool:
        """Entregar un evento. Devuelve False si el canal falló."""
        try:
            await self._notifier.send(event.to_message(self._label))
        except Exception as e:
            self._failed += 1
            logger.error(
                "Fallo al notificar %s: %s", event.__class__.__name__, e,
            )
            return False
        self._delivered += 1
        return True

    @property
    def stats(self) -> dict:
        return {
            "running": self._task is not None and not self._task.done(),
            "delivered": self._delivered,
            "failed": self._failed,
            "pending": self._queue.qsize() if self._queue is not None else 0,
            "history": len(self._history),
        }
