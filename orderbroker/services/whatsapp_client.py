# orderbroker/services/whatsapp_client.py
from typing import List

import requests

from orderbroker.domain.errors import DeliveryFailed
from orderbroker.utils.settings import (
    WHATSAPP_API_URL,
    WHATSAPP_TOKEN,
    WHATSAPP_RECIPIENT,
    WHATSAPP_TIMEOUT_SECONDS,
)
from orderbroker.utils.logging import get_logger

logger = get_logger(__name__)


class WhatsAppClient:
    """
    Klient WhatsApp Cloud API, jeden POST na wiadomosc.
    Bez retry tutaj, ponawianiem zajmuje sie kolejka.
    """

    def __init__(
        self,
        api_url: str | None = None,
        token: str | None = None,
        recipient: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url or WHATSAPP_API_URL
        self.token = token if token is not None else WHATSAPP_TOKEN
        self.recipient = recipient or WHATSAPP_RECIPIENT
        self.timeout = timeout or WHATSAPP_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def send_template(self, template_name: str, components: List[dict], language: str = "en") -> dict:
        body = {
            "messaging_product": "whatsapp",
            "to": self.recipient,
            "type": "template",
            "template": {
                "name": template_name,
                "language": {"code": language},
                "components": components,
            },
        }
        logger.info(f"WhatsApp POST template={template_name}")

        try:
            resp = self.session.post(
                self.api_url,
                json=body,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DeliveryFailed(f"WhatsApp request failed: {e}") from e

        if not resp.ok:
            raise DeliveryFailed(
                f"Failed to send WhatsApp message: {resp.status_code} {resp.text}"
            )
        return resp.json()
