"""
SpotPulse – Binance Exchange Metadata (REST)
==============================================
Resuelve el step size (filtro LOT_SIZE) de cada par vía

    GET {rest_url}/api/v3/exchangeInfo?symbol=ARUSDT

El resultado se cachea durante toda la vida del proceso. Los step sizes
configurados de forma estática tienen prioridad y no generan tráfico.

Un fallo de red se reintenta UNA vez; cualquier fallo final se convierte
en ExchangeMetadataError.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional

import httpx

from spotpulse.application.ports.exchange_metadata import IExchangeMetadata
from spotpulse.domain.exceptions.domain_errors import ExchangeMetadataError
from spotpulse.shared.logging.logger import get_logger

logger = get_logger("binance_metadata")

EXCHANGE_INFO_ENDPOINT = "/api/v3/exchangeInfo"


def extract_step_size(payload: Mapping[str, Any], symbol: str) -> float:
    """Buscar el stepSize del filtro LOT_SIZE de `symbol` en exchangeInfo."""
    for info in payload.get("symbols", []):
        if info.get("symbol") != symbol:
            continue
        for flt in info.get("filters", []):
            if flt.get("filterType") == "LOT_SIZE":
                step = float(flt["stepSize"])
                if step <= 0:
                    raise ExchangeMetadataError(
                        f"Non-positive step size for {symbol}", symbol=symbol,
                    )
                return step
        raise ExchangeMetadataError(f"No LOT_SIZE filter for {symbol}", symbol=symbol)
    raise ExchangeMetadataError(f"Symbol {symbol} not found in exchangeInfo", symbol=symbol)


class BinanceExchangeMetadata(IExchangeMetadata):

    def __init__(
        self,
        rest_url: str = "https://api.binance.com",
        timeout: float = 10.0,
        static_step_sizes: Optional[Mapping[str, float]] = None,
    ) -> None:
        self._rest_url = rest_url.rstrip("/")
        self._timeout = timeout
        self._cache: Dict[str, float] = {
            s.upper(): float(v) for s, v in (static_step_sizes or {}).items()
        }
        self._requests = 0

    @property
    def cached(self) -> Dict[str, float]:
        return dict(self._cache)

    async def get_step_size(self, symbol: str) -> float:
        if symbol in self._cache:
            return self._cache[symbol]

        payload = await self._request(symbol)
        try:
            step = extract_step_size(payload, symbol)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ExchangeMetadataError(
                f"Malformed exchangeInfo for {symbol}: {e!r}", symbol=symbol,
            ) from e

        self._cache[symbol] = step
        logger.info("Step size %s = %s", symbol, step)
        return step

    async def _request(self, symbol: str) -> Dict[str, Any]:
        url = f"{self._rest_url}{EXCHANGE_INFO_ENDPOINT}"
        for attempt in range(2):
            self._requests += 1
            try:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.get(url, params={"symbol": symbol})
                resp.raise_for_status()
                return resp.json()

            except httpx.HTTPStatusError as exc:
                logger.error(
                    "exchangeInfo HTTP %s para %s: %s",
                    exc.response.status_code, symbol, exc.response.text[:200],
                )
                raise ExchangeMetadataError(
                    f"exchangeInfo returned HTTP {exc.response.status_code} for {symbol}",
                    symbol=symbol,
                ) from exc
            except httpx.HTTPError as exc:
                if attempt == 0:
                    logger.warning("exchangeInfo falló (%s), reintentando: %s", symbol, exc)
                    await asyncio.sleep(0.5)
                    continue
                raise ExchangeMetadataError(
                    f"exchangeInfo unreachable for {symbol}: {exc}", symbol=symbol,
                ) from exc
            except ValueError as exc:
                raise ExchangeMetadataError(
                    f"exchangeInfo returned invalid JSON for {symbol}", symbol=symbol,
                ) from exc

        raise ExchangeMetadataError(f"exchangeInfo failed for {symbol}", symbol=symbol)
