"""
Push gateways: delivery of one message to many device tokens.

Two gateways are supported:
- ExpoPushGateway: mobile devices (ios/android), Expo push API over httpx,
  batched by EXPO_BATCH_SIZE tokens per request
- WebPushGateway: browsers (web), Web Push protocol via pywebpush, one
  request per subscription

Gateways never raise on delivery failure. They return one DeliveryOutcome
per attempted token; the caller decides what to prune and what to log.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from pywebpush import webpush, WebPushException

from backend.src.config.settings import EXPO_PUSH_SEND_URL
from backend.src.utils.logging_config import get_logger


logger = get_logger("notifications")


EXPO_BATCH_SIZE = 100
EXPO_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")

# Expo ticket error meaning the token will never be deliverable again
EXPO_DEVICE_NOT_REGISTERED = "DeviceNotRegistered"

# Web Push status codes meaning the subscription is gone
WEB_PUSH_GONE_STATUSES = (404, 410)

WEB_PUSH_TTL_SECONDS = 86400


def is_expo_push_token(token: Optional[str]) -> bool:
    """Check that a token has the ExponentPushToken[...] shape."""
    if not isinstance(token, str):
        return False
    return token.startswith(EXPO_TOKEN_PREFIXES) and token.endswith("]")


def chunked(items: List[str], size: int) -> List[List[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


@dataclass
class PushMessage:
    """Message content shared by every token of one dispatch."""

    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)
    sound: str = "default"


@dataclass
class DeliveryOutcome:
    """
    Per-token delivery result.

    Attributes:
        token: Push token the outcome refers to
        ok: Gateway accepted the message
        invalid: Token is permanently invalid and should be removed
        error: Gateway or transport error, when not ok
    """

    token: str
    ok: bool
    invalid: bool = False
    error: Optional[str] = None


class ExpoPushGateway:
    """
    Expo push API client.

    Usage:
        >>> gateway = ExpoPushGateway(access_token=settings.expo_access_token)
        >>> outcomes = gateway.send(tokens, PushMessage("Title", "Body"))
    """

    def __init__(
        self,
        url: str = EXPO_PUSH_SEND_URL,
        access_token: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the Expo gateway.

        Args:
            url: Expo push send endpoint
            access_token: Optional Expo access token (enhanced security mode)
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.url = url
        self.access_token = access_token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def send(self, tokens: List[str], message: PushMessage) -> List[DeliveryOutcome]:
        """
        Send a message to Expo push tokens.

        Tokens not in Expo format are skipped (no outcome). Each batch is
        one HTTP request; a failed request marks its whole batch as failed
        and the next batch is still attempted.

        Args:
            tokens: Expo push tokens
            message: Message to deliver

        Returns:
            One DeliveryOutcome per valid token
        """
        valid = [t for t in tokens if is_expo_push_token(t)]
        skipped = len(tokens) - len(valid)
        if skipped:
            logger.warning(f"Skipping {skipped} tokens not in Expo push format")
        if not valid:
            return []

        outcomes: List[DeliveryOutcome] = []
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            for batch in chunked(valid, EXPO_BATCH_SIZE):
                outcomes.extend(self._send_batch(client, batch, message))
        return outcomes

    def _send_batch(
        self,
        client: httpx.Client,
        batch: List[str],
        message: PushMessage,
    ) -> List[DeliveryOutcome]:
        payload = [
            {
                "to": token,
                "sound": message.sound,
                "title": message.title,
                "body": message.body,
                "data": message.data,
            }
            for token in batch
        ]

        try:
            response = client.post(self.url, json=payload, headers=self._headers())
            response.raise_for_status()
            tickets = response.json().get("data", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                f"Expo push request failed: {e}",
                extra={"batch_size": len(batch)},
            )
            return [DeliveryOutcome(token=t, ok=False, error=str(e)) for t in batch]

        outcomes = []
        for index, token in enumerate(batch):
            ticket = tickets[index] if index < len(tickets) else {}
            if ticket.get("status") == "ok":
                outcomes.append(DeliveryOutcome(token=token, ok=True))
                continue

            details = ticket.get("details") or {}
            error_code = details.get("error")
            outcomes.append(
                DeliveryOutcome(
                    token=token,
                    ok=False,
                    invalid=error_code == EXPO_DEVICE_NOT_REGISTERED,
                    error=error_code or ticket.get("message") or "missing ticket",
                )
            )
        return outcomes


class WebPushGateway:
    """
    Web Push client for browser subscriptions.

    The push token of a web target is the JSON-encoded subscription
    ({"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}}).
    """

    def __init__(
        self,
        vapid_private_key: str = "",
        vapid_claims: Optional[Dict[str, str]] = None,
        ttl: int = WEB_PUSH_TTL_SECONDS,
    ):
        """
        Initialize the Web Push gateway.

        Args:
            vapid_private_key: VAPID private key for push authentication
            vapid_claims: VAPID claims dict (e.g., {"sub": "mailto:..."})
            ttl: Time-to-live of the push message at the push service
        """
        self.vapid_private_key = vapid_private_key
        self.vapid_claims = vapid_claims or {}
        self.ttl = ttl

    def send(self, tokens: List[str], message: PushMessage) -> List[DeliveryOutcome]:
        """
        Send a message to Web Push subscriptions.

        Args:
            tokens: JSON-encoded subscriptions
            message: Message to deliver

        Returns:
            One DeliveryOutcome per token
        """
        if not tokens:
            return []

        if not self.vapid_private_key:
            logger.warning("VAPID keys not configured; web push targets not notified")
            return [
                DeliveryOutcome(token=t, ok=False, error="VAPID keys not configured")
                for t in tokens
            ]

        payload_json = json.dumps(
            {"title": message.title, "body": message.body, "data": message.data}
        )
        return [self._send_one(token, payload_json) for token in tokens]

    def _send_one(self, token: str, payload_json: str) -> DeliveryOutcome:
        try:
            subscription_info = json.loads(token)
        except ValueError:
            return DeliveryOutcome(
                token=token, ok=False, invalid=True, error="Malformed subscription"
            )

        try:
            webpush(
                subscription_info=subscription_info,
                data=payload_json,
                vapid_private_key=self.vapid_private_key,
                vapid_claims=dict(self.vapid_claims),
                ttl=self.ttl,
                headers={"Urgency": "high"},
            )
        except WebPushException as e:
            response = getattr(e, "response", None)
            status_code = response.status_code if response is not None else None
            return DeliveryOutcome(
                token=token,
                ok=False,
                invalid=status_code in WEB_PUSH_GONE_STATUSES,
                error=str(e),
            )
        except Exception as e:
            return DeliveryOutcome(token=token, ok=False, error=str(e))

        return DeliveryOutcome(token=token, ok=True)
