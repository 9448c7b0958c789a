"""
Dependency Injection Container.

Único lugar donde se crean dependencias concretas. Cada componente se
construye perezosamente a partir de Settings y se comparte (singleton
dentro del contenedor). Los tests sustituyen piezas con override().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from spotpulse.application.ports.exchange_metadata import IExchangeMetadata
from spotpulse.application.ports.market_data_provider import IMarketDataProvider
from spotpulse.application.ports.notifier import INotifier
from spotpulse.application.use_cases.process_update_usecase import ProcessUpdateUseCase
from spotpulse.domain.exceptions.domain_errors import ConfigurationError
from spotpulse.infrastructure.event_bus import EventBus
from spotpulse.infrastructure.notification_dispatcher import NotificationDispatcher
from spotpulse.services.evaluators.base import SignalEvaluator
from spotpulse.services.position_ledger import PositionLedger
from spotpulse.services.strategy_registry import StrategySpec, get_strategy
from spotpulse.services.window_aggregator import WindowAggregator
from spotpulse.shared.config.settings import Settings
from spotpulse.state.engine_state import EngineState


@dataclass
class Container:
    """Contenedor de Inyección de Dependencias."""

    settings: Settings = field(default_factory=Settings)

    _event_bus: Optional[EventBus] = None
    _engine_state: Optional[EngineState] = None
    _strategy: Optional[StrategySpec] = None
    _evaluator: Optional[SignalEvaluator] = None
    _aggregator: Optional[WindowAggregator] = None
    _metadata: Optional[IExchangeMetadata] = None
    _notifier: Optional[INotifier] = None
    _dispatcher: Optional[NotificationDispatcher] = None
    _ledger: Optional[PositionLedger] = None
    _feed: Optional[IMarketDataProvider] = None
    _process_update: Optional[ProcessUpdateUseCase] = None

    # ==================== Estado y estrategia ====================

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            self._event_bus = EventBus(max_queue_size=self.settings.event_bus_max_queue_size)
        return self._event_bus

    @property
    def engine_state(self) -> EngineState:
        if self._engine_state is None:
            self._engine_state = EngineState()
        return self._engine_state

    @property
    def strategy(self) -> StrategySpec:
        """Lanza ConfigurationError si la estrategia no existe."""
        if self._strategy is None:
            self._strategy = get_strategy(self.settings.strategy)
        return self._strategy

    @property
    def evaluator(self) -> SignalEvaluator:
        if self._evaluator is None:
            self._evaluator = self.strategy.build(self.settings)
        return self._evaluator

    @property
    def aggregator(self) -> WindowAggregator:
        if self._aggregator is None:
            self._aggregator = WindowAggregator(
                self.strategy.window_policy,
                capacity=self.settings.window_capacity,
                candle_history=self.strategy.candle_history,
            )
        return self._aggregator

    @property
    def candle_interval(self) -> str:
        """Intervalo explícito de Settings o, si no se fijó, el de la estrategia."""
        if "candle_interval" in self.settings.model_fields_set:
            return self.settings.candle_interval
        return self.strategy.default_interval

    # ==================== Ports ====================

    @property
    def metadata(self) -> IExchangeMetadata:
        if self._metadata is None:
            from spotpulse.infrastructure.binance_metadata import BinanceExchangeMetadata
            self._metadata = BinanceExchangeMetadata(
                rest_url=self.settings.exchange_rest_url,
                timeout=self.settings.exchange_timeout,
                static_step_sizes=self.settings.step_sizes,
            )
        return self._metadata

    @property
    def notifier(self) -> INotifier:
        """Lanza ConfigurationError si falta configuración de Telegram."""
        if self._notifier is None:
            from spotpulse.infrastructure.notifiers import LogNotifier, TelegramNotifier
            s = self.settings
            if s.notifier == "telegram":
                if not s.telegram_bot_token:
                    raise ConfigurationError(
                        "telegram notifier requires TELEGRAM_BOT_TOKEN",
                        field="telegram_bot_token",
                    )
                if not s.telegram_chat_id:
                    raise ConfigurationError(
                        "telegram notifier requires TELEGRAM_CHAT_ID",
                        field="telegram_chat_id",
                    )
                self._notifier = TelegramNotifier(
                    s.telegram_bot_token, s.telegram_chat_id, api_url=s.telegram_api_url,
                )
            else:
                self._notifier = LogNotifier()
        return self._notifier

    @property
    def dispatcher(self) -> NotificationDispatcher:
        if self._dispatcher is None:
            self._dispatcher = NotificationDispatcher(
                self.event_bus,
                self.notifier,
                label=self.settings.bot_label,
                history=self.settings.outcome_history,
            )
        return self._dispatcher

    @property
    def feed(self) -> IMarketDataProvider:
        if self._feed is None:
            from spotpulse.infrastructure.binance_stream import BinanceStreamClient
            self._feed = BinanceStreamClient(
                self.event_bus,
                symbols=self.settings.symbols,
                kinds=self.strategy.streams,
                ws_url=self.settings.feed_ws_url,
                interval=self.candle_interval,
                reconnect_delay=self.settings.feed_reconnect_delay,
                open_timeout=self.settings.feed_open_timeout,
            )
        return self._feed

    # ==================== Servicios / Use Cases ====================

    @property
    def ledger(self) -> PositionLedger:
        if self._ledger is None:
            s = self.settings
            self._ledger = PositionLedger(
                self.engine_state,
                self.metadata,
                self.dispatcher,
                quote_asset=s.quote_asset,
                initial_quote_balance=s.initial_quote_balance,
                budget=s.budget,
                spread_pct=s.spread_pct,
            )
        return self._ledger

    @property
    def process_update(self) -> ProcessUpdateUseCase:
        if self._process_update is None:
            self._process_update = ProcessUpdateUseCase(
                self.event_bus,
                self.aggregator,
                self.evaluator,
                self.ledger,
                self.engine_state,
                self.dispatcher,
            )
        return self._process_update

    def validate(self) -> None:
        """Resolver todo lo que puede fallar por configuración, antes de conectar."""
        _ = self.strategy
        _ = self.evaluator
        _ = self.notifier

    # ==================== Lifecycle ====================

    def reset(self) -> None:
        """Resetea todas las instancias (útil para tests)."""
        for name in (
            "event_bus", "engine_state", "strategy", "evaluator", "aggregator",
            "metadata", "notifier", "dispatcher", "ledger", "feed", "process_update",
        ):
            setattr(self, f"_{name}", None)

    def override(self, name: str, instance: Any) -> None:
        """Sustituir una dependencia (p.ej. un mock en tests)."""
        attr_name = f"_{name}"
        if not hasattr(self, attr_name):
            raise ValueError(f"Unknown dependency: {name}")
        setattr(self, attr_name, instance)


# ==================== Global Container ====================

_container: Optional[Container] = None


def get_container() -> Container:
    global _container
    if _container is None:
        _container = Container()
    return _container


def init_container(settings: Optional[Settings] = None) -> Container:
    global _container
    _container = Container(settings=settings if settings is not None else Settings())
    return _container
