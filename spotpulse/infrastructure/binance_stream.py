"""
SpotPulse – Binance Stream Client (asíncrono)
===============================================
Cliente WebSocket de streams combinados de Binance:

    wss://stream.binance.com:9443/stream?streams=arusdt@trade/arusdt@kline_3m

Convierte cada mensaje en un evento de dominio (Tick, Candle,
TickerUpdate) y lo publica en el EventBus (tópico `feed`).

RECONEXIÓN CON DELAY FIJO:
- Ante cualquier cierre o error se emite FeedStatus(connected=False), se
  espera `reconnect_delay` segundos y se vuelve a suscribir.
- El delay es FIJO (sin backoff exponencial).
- Un FeedStatus(connected=True) marca cada conexión nueva.

MENSAJES MALFORMADOS:
- Se registran (warning), se cuentan y se descartan. Nunca cortan el
  stream.

PROTECCIÓN DE MEMORIA:
- No se guarda historial aquí; solo se reenvía al EventBus.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import AsyncIterator, Iterable, Optional, Union

import websockets

from spotpulse.application.ports.market_data_provider import FeedEvent, IMarketDataProvider
from spotpulse.domain.entities.candle import Candle
from spotpulse.domain.exceptions.domain_errors import MalformedPayloadError
from spotpulse.domain.value_objects.market_updates import FeedStatus, TickerUpdate
from spotpulse.domain.value_objects.tick import Tick
from spotpulse.infrastructure.event_bus import FEED_TOPIC, EventBus
from spotpulse.shared.logging.logger import get_logger

logger = get_logger("binance_stream")

_TICKER_EVENTS = ("24hrMiniTicker", "24hrTicker")


# ════════════════════════════════════════════════════════════════════
#  PARSING
# ════════════════════════════════════════════════════════════════════


def build_stream_url(
    ws_url: str,
    symbols: Iterable[str],
    kinds: Iterable[str],
    interval: str = "3m",
) -> str:
    """URL de stream combinado para todos los símbolos y tipos."""
    names = []
    for symbol in symbols:
        for kind in kinds:
            suffix = f"kline_{interval}" if kind == "kline" else kind
            names.append(f"{symbol.lower()}@{suffix}")
    return f"{ws_url.rstrip('/')}/stream?streams={'/'.join(names)}"


def parse_stream_message(raw: Union[str, bytes]) -> Optional[FeedEvent]:
    """
    Decodificar UN mensaje del stream combinado.

    Returns:
        Tick / Candle / TickerUpdate, o None para tipos de evento que
        no interesan.

    Raises:
        MalformedPayloadError: JSON inválido o campos ausentes/no numéricos.
    """
    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise MalformedPayloadError(f"Invalid JSON: {e}", payload=str(raw)[:200]) from e

    if not isinstance(message, dict):
        raise MalformedPayloadError("Payload is not an object", payload=str(raw)[:200])

    data = message.get("data", message)
    if not isinstance(data, dict):
        raise MalformedPayloadError("Stream data is not an object", payload=str(raw)[:200])

    event_type = data.get("e")
    try:
        if event_type == "trade":
            return Tick(
                symbol=data["s"],
                price=float(data["p"]),
                timestamp=float(data["T"]) / 1000,
            )

        if event_type == "kline":
            k = data["k"]
            return Candle(
                symbol=k.get("s", data["s"]),
                open_time=float(k["t"]) / 1000,
                open=float(k["o"]),
                high=float(k["h"]),
                low=float(k["l"]),
                close=float(k["c"]),
                is_final=bool(k["x"]),
            )

        if event_type in _TICKER_EVENTS:
            return TickerUpdate(
                symbol=data["s"],
                last_price=float(data["c"]),
                open_price=float(data["o"]),
                high=float(data["h"]),
                low=float(data["l"]),
                timestamp=float(data.get("E", 0)) / 1000,
            )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedPayloadError(
            f"Malformed '{event_type}' payload: {e!r}", payload=str(raw)[:200],
        ) from e

    return None


# ════════════════════════════════════════════════════════════════════
#  CLIENTE
# ════════════════════════════════════════════════════════════════════


class BinanceStreamClient(IMarketDataProvider):
    """
    Ciclo de vida:
      1. start()   → lanza la task que bombea stream() al EventBus
      2. stream()  → conexión perpetua con delay fijo entre intentos
      3. stop()    → shutdown limpio
    """

    def __init__(
        self,
        event_bus: EventBus,
        symbols: Iterable[str],
        kinds: Iterable[str],
        ws_url: str = "wss://stream.binance.com:9443",
        interval: str = "3m",
        reconnect_delay: float = 2.0,
        open_timeout: float = 10.0,
    ) -> None:
        self._event_bus = event_bus
        self._url = build_stream_url(ws_url, symbols, kinds, interval)
        self._reconnect_delay = reconnect_delay
        self._open_timeout = open_timeout

        self._ws = None
        self._running = False
        self._stopping = False
        self._pump_task: Optional[asyncio.Task] = None

        # Estadísticas de monitoreo
        self._events_received = 0
        self._malformed_dropped = 0
        self._reconnects = 0
        self._last_event_time = 0.0
        self._connected_since = 0.0

    @property
    def url(self) -> str:
        return self._url

    # ──────────────────────── Lifecycle ──────────────────────────────────

    async def start(self) -> None:
        """Iniciar el bombeo al EventBus. Idempotente."""
        if self._running:
            logger.warning("BinanceStreamClient ya está corriendo, ignorando start()")
            return
        self._running = True
        self._stopping = False
        self._pump_task = asyncio.create_task(self._pump(), name="binance-stream-pump")
        logger.info("BinanceStreamClient iniciado → %s", self._url)

    async def stop(self) -> None:
        self._stopping = True
        self._running = False
        logger.info("Deteniendo BinanceStreamClient...")

        if self._ws is not None:
            await self._ws.close()

        if self._pump_task and not self._pump_task.done():
            self._pump_task.cancel()
            try:
                await self._pump_task
            except asyncio.CancelledError:
                pass

        logger.info(
            "BinanceStreamClient detenido. Eventos recibidos: %d", self._events_received,
        )

    async def _pump(self) -> None:
        async for event in self.stream():
            await self._event_bus.publish(FEED_TOPIC, event)

    # ──────────────────────── Stream ────────────────────────────────────

    async def stream(self) -> AsyncIterator[FeedEvent]:
        """
        Generador perezoso e infinito de eventos del feed.
        Termina solo tras stop().
        """
        while not self._stopping:
            reason = "stream ended"
            try:
                logger.info("Conectando a Binance: %s", self._url)
                async with websockets.connect(
                    self._url,
                    open_timeout=self._open_timeout,
                    close_timeout=5,
                    max_size=2**20,
                ) as ws:
                    self._ws = ws
                    self._connected_since = time.time()
                    logger.info("✓ Conectado a Binance WebSocket")
                    yield FeedStatus(connected=True, reason="connected")

                    async for raw in ws:
                        event = self._decode(raw)
                        if event is not None:
                            yield event

            except websockets.ConnectionClosed as e:
                reason = f"connection closed: {e}"
                logger.warning("Conexión cerrada: %s", e)
            except OSError as e:
                reason = f"network error: {e}"
                logger.error("Error de red: %s", e)
            except Exception as e:
                reason = f"unexpected error: {e}"
                logger.error("Error inesperado en stream: %s", e, exc_info=True)
            finally:
                self._ws = None

            yield FeedStatus(connected=False, reason=reason)

            if self._stopping:
                break

            self._reconnects += 1
            logger.info(
                "Reconectando en %.1fs (reconexión #%d)...",
                self._reconnect_delay, self._reconnects,
            )
            await asyncio.sleep(self._reconnect_delay)

    def _decode(self, raw: Union[str, bytes]) -> Optional[FeedEvent]:
        try:
            event = parse_stream_message(raw)
        except MalformedPayloadError as e:
            self._malformed_dropped += 1
            logger.warning("Mensaje descartado: %s", e.message)
            return None
        if event is not None:
            self._events_received += 1
            self._last_event_time = time.time()
        return event

    # ──────────────────────── Stats ─────────────────────────────────────

    @property
    def stats(self) -> dict:
        return {
            "running": self._running,
            "connected": self._ws is not None,
            "url": self._url,
            "events_received": self._events_received,
            "malformed_dropped": self._malformed_dropped,
            "reconnects": self._reconnects,
            "last_event_time": self._last_event_time,
            "connected_since": self._connected_since,
        }
