"""
SpotPulse – Notifiers
======================
Canales de entrega de mensajes de outcome.

  TelegramNotifier  POST {api_url}/bot{token}/sendMessage {chat_id, text}
  LogNotifier       escribe el mensaje en el log (canal por defecto)
"""

from __future__ import annotations

import httpx

from spotpulse.application.ports.notifier import INotifier
from spotpulse.domain.exceptions.domain_errors import NotificationError
from spotpulse.shared.logging.logger import get_logger

logger = get_logger("notifiers")


class TelegramNotifier(INotifier):

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        api_url: str = "https://api.telegram.org",
        timeout: float = 10.0,
    ) -> None:
        self._url = f"{api_url.rstrip('/')}/bot{bot_token}/sendMessage"
        self._chat_id = chat_id
        self._timeout = timeout

    async def send(self, text: str) -> None:
        """
        Enviar `text` al chat configurado.

        Raises:
            NotificationError: con el status HTTP o el tipo de error de red,
                nunca con la URL (lleva el token del bot).
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json={"chat_id": self._chat_id, "text": text})
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise NotificationError(
                f"Telegram sendMessage returned HTTP {status}", status_code=status,
            ) from None
        except httpx.HTTPError as exc:
            raise NotificationError(
                f"Telegram sendMessage failed: {exc.__class__.__name__}",
            ) from None


class LogNotifier(INotifier):

    async def send(self, text: str) -> None:
        logger.info("📣 %s", text.replace("\n", " | "))
