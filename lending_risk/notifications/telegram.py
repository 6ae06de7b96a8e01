"""Telegram notification channel: alert bot for incidents, log bot for cycles."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"
REQUEST_TIMEOUT_SECONDS = 15


class TelegramNotifier:
    """Post monitoring messages through two Telegram bots."""

    def __init__(self, config: TelegramConfig) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id

    async def _post(self, bot_token: str, text: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "disable_notification": silent,
            "disable_web_page_preview": True,
        }
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)

        try:
            async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
                async with session.post(
                    f"{TELEGRAM_API}/bot{bot_token}/sendMessage", json=payload
                ) as response:
                    if response.status != 200:
                        logger.error("Telegram rejected message: HTTP %s", response.status)
                        return False
                    return True
        except aiohttp.ClientError as e:
            logger.error("Telegram request failed: %s", e)
            return False

    async def send_alert(self, message: str, subject: str = "") -> bool:
        """Send an audible alert; the subject, if any, becomes the first line."""
        text = f"{subject}\n\n{message}" if subject else message
        sent = await self._post(self.alert_bot_token, text, silent=False)
        if sent:
            logger.info("Telegram alert sent")
        return sent

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Send a monitoring cycle log through the log bot."""
        sent = await self._post(self.log_bot_token, message, silent=silent)
        if sent:
            logger.debug("Telegram log sent")
        return sent
