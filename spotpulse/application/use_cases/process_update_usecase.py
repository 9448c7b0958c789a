"""
SpotPulse – Process Update Use Case
=====================================
Caso de uso central: consume eventos del feed, actualiza las ventanas,
evalúa la estrategia activa y ejecuta sus decisiones.

FLUJO:
  EventBus (feed topic)
       │
       ▼
  ProcessUpdateUseCase._run()  ◄── loop consumiendo de su Queue
       │
       ├── FeedStatus(connected=False) → reset completo (ventanas, memoria
       │                                  de señales, guardas, lotes)
       │   (también un connected=True sin desconexión previa: la cola la
       │    descartó por drop-oldest)
       ├── Candle       → WindowAggregator.on_candle_update()
       ├── Tick         → WindowAggregator.on_tick()  (duplicado → nada)
       └── TickerUpdate → directo al evaluador
                │
                ▼  (solo si el evento es el disparador del evaluador)
         SignalEvaluator.evaluate(snapshot, state) → Decision
                │
                ├── BUY   → PositionLedger.execute_buy()
                ├── SELL  → PositionLedger.execute_sell()
                ├── ALERT → SignalAlert al publisher
                └── HOLD  → nada

UN EVENTO A LA VEZ:
  Cada evento se procesa completo antes de leer el siguiente. La única
  ejecución concurrente posible es el temporizador de debounced_range,
  y las guardas del ledger la cubren.

ERRORES:
  Una excepción procesando un evento se registra con traceback, se
  limpian las guardas y el acumulador del evaluador, y el loop sigue.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from spotpulse.application.ports.market_data_provider import FeedEvent
from spotpulse.application.ports.notifier import IOutcomePublisher
from spotpulse.domain.entities.candle import Candle
from spotpulse.domain.entities.decision import Action, Decision
from spotpulse.domain.events.domain_events import SignalAlert
from spotpulse.domain.value_objects.market_updates import FeedStatus, TickerUpdate
from spotpulse.domain.value_objects.tick import Tick
from spotpulse.infrastructure.event_bus import FEED_TOPIC, EventBus
from spotpulse.services.evaluators.base import (
    TRIGGER_CANDLE,
    TRIGGER_TICK,
    TRIGGER_TICKER,
    MarketSnapshot,
    SignalEvaluator,
)
from spotpulse.services.position_ledger import PositionLedger
from spotpulse.services.window_aggregator import WindowAggregator
from spotpulse.shared.logging.logger import get_logger
from spotpulse.state.engine_state import EngineState

logger = get_logger("process_update")


class ProcessUpdateUseCase:

    def __init__(
        self,
        event_bus: EventBus,
        aggregator: WindowAggregator,
        evaluator: SignalEvaluator,
        ledger: PositionLedger,
        state: EngineState,
        publisher: IOutcomePublisher,
    ) -> None:
        self._event_bus = event_bus
        self._aggregator = aggregator
        self._evaluator = evaluator
        self._ledger = ledger
        self._state = state
        self._publisher = publisher

        self._queue: Optional[asyncio.Queue] = None
        self._running = False
        self._feed_connected: Optional[bool] = None
        self._processed_count = 0
        self._decisions: dict[str, int] = {a.value: 0 for a in Action if a != Action.HOLD}
        self._errors = 0
        self._resets = 0
        self._last_decision: Optional[Decision] = None

        evaluator.bind(self.act)

    # ════════════════════════════════════════════════════════════════
    #  LIFECYCLE
    # ════════════════════════════════════════════════════════════════

    async def subscribe(self) -> None:
        if self._queue is None:
            self._queue = await self._event_bus.subscribe(FEED_TOPIC, "process_update_usecase")

    async def start(self) -> None:
        """Suscribirse al EventBus y ejecutar el loop de procesamiento."""
        await self.subscribe()
        self._running = True
        logger.info(
            "ProcessUpdateUseCase iniciado (estrategia=%s, trigger=%s)",
            self._evaluator.name, self._evaluator.trigger,
        )
        await self._run()

    async def stop(self) -> None:
        self._running = False
        self._evaluator.discard_pending()
        logger.info(
            "ProcessUpdateUseCase detenido. Eventos procesados: %d", self._processed_count,
        )

    async def _run(self) -> None:
        if self._queue is None:
            raise RuntimeError("ProcessUpdateUseCase no está suscrito al EventBus")

        while self._running:
            try:
                try:
                    event = await asyncio.wait_for(self._queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue

                await self.handle(event)
                self._processed_count += 1

            except asyncio.CancelledError:
                logger.info("ProcessUpdateUseCase cancelado")
                break
            except Exception as e:
                self._errors += 1
                logger.error("Error procesando evento: %s", e, exc_info=True)
                self.recover()

    # ════════════════════════════════════════════════════════════════
    #  PROCESAMIENTO
    # ════════════════════════════════════════════════════════════════

    async def handle(self, event: FeedEvent) -> Decision:
        """Procesar UN evento del feed y ejecutar la decisión resultante."""
        if isinstance(event, FeedStatus):
            if event.connected:
                logger.info("Feed conectado")
                if self._feed_connected:
                    # La desconexión previa se perdió en la cola
                    logger.warning("Reconexión sin desconexión previa: reiniciando estado")
                    self.reset_after_disconnect()
            else:
                logger.warning("Feed desconectado (%s)", event.reason)
                self.reset_after_disconnect()
            self._feed_connected = event.connected
            return Decision.hold()

        if isinstance(event, Candle):
            new_final = self._aggregator.on_candle_update(event)
            if self._evaluator.trigger != TRIGGER_CANDLE or not new_final:
                return Decision.hold(event.symbol)
            snapshot = self._snapshot(event.symbol, event.close, event.open_time, new_candle=True)

        elif isinstance(event, Tick):
            if not self._aggregator.on_tick(event.symbol, event.price):
                return Decision.hold(event.symbol)
            if self._evaluator.trigger != TRIGGER_TICK:
                return Decision.hold(event.symbol)
            snapshot = self._snapshot(event.symbol, event.price, event.timestamp)

        elif isinstance(event, TickerUpdate):
            if self._evaluator.trigger != TRIGGER_TICKER:
                return Decision.hold(event.symbol)
            snapshot = self._snapshot(
                event.symbol, event.last_price, event.timestamp, ticker=event,
            )

        else:
            logger.debug("Evento ignorado: %r", event)
            return Decision.hold()

        decision = self._evaluator.evaluate(snapshot, self._state)
        await self.act(decision)
        return decision

    def _snapshot(
        self,
        symbol: str,
        price: float,
        timestamp: float,
        ticker: Optional[TickerUpdate] = None,
        new_candle: bool = False,
    ) -> MarketSnapshot:
        return MarketSnapshot(
            symbol=symbol,
            price=price,
            timestamp=timestamp,
            window=self._aggregator.window(symbol),
            candles=self._aggregator.candles(symbol),
            ticker=ticker,
            quote_balance=self._ledger.quote_balance,
            base_balance=self._ledger.base_balance(symbol),
            new_candle=new_candle,
        )

    async def act(self, decision: Decision) -> None:
        """Ejecutar una Decision (también la usa el temporizador de lotes)."""
        if decision.is_hold:
            return

        self._decisions[decision.action.value] += 1
        self._last_decision = decision
        logger.info(
            "Decisión %s %s @ %s (%s)",
            decision.action.value, decision.symbol, decision.price, decision.reason,
        )

        if decision.action == Action.BUY:
            await self._ledger.execute_buy(decision.symbol, decision.price)
        elif decision.action == Action.SELL:
            sold = await self._ledger.execute_sell(
                decision.symbol, decision.price, decision.reason,
            )
            if sold is not None:
                self._evaluator.on_position_closed(decision.symbol, self._state)
        elif decision.action == Action.ALERT:
            await self._publisher.publish(SignalAlert(
                symbol=decision.symbol,
                price=decision.price,
                text=decision.reason,
            ))

    # ════════════════════════════════════════════════════════════════
    #  RESET
    # ════════════════════════════════════════════════════════════════

    def reset_after_disconnect(self) -> None:
        """Descartar todo el estado rodante: la historia tras un hueco no es fiable."""
        self._aggregator.reset()
        self._state.reset_signals()
        self._state.reset_guards()
        self._evaluator.reset()
        self._resets += 1

    def recover(self) -> None:
        self._state.reset_guards()
        self._evaluator.discard_pending()

    @property
    def stats(self) -> dict:
        return {
            "running": self._running,
            "processed": self._processed_count,
            "decisions": dict(self._decisions),
            "last_decision": self._last_decision.to_dict() if self._last_decision else None,
            "errors": self._errors,
            "resets": self._resets,
        }
