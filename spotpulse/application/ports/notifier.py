"""
SpotPulse – Ports: Notifier + Outcome Publisher
=================================================
Dos contratos separados:

  IOutcomePublisher  lado del motor: publica un DomainEvent y vuelve de
                     inmediato. Nunca espera a la entrega.
  INotifier          lado de la entrega: envía un texto a un canal externo
                     (Telegram, log, ...). Puede fallar; quien lo llama
                     registra el error y sigue.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from spotpulse.domain.events.domain_events import DomainEvent


class IOutcomePublisher(ABC):

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        ...


class INotifier(ABC):

    @abstractmethod
    async def send(self, text: str) -> None:
        ...
