"""Notification channels for reminder delivery.

Each channel takes a resolved recipient, lists its targets (an email
address, push subscriptions, ...) and sends one payload per target. A send
reports failure in its ChannelResult instead of raising. Channels are
resolved once at startup into a ChannelRegistry.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx
from pywebpush import WebPushException, webpush

import config
from logger import get_logger
from utils import sanitize_for_log
from .models import PushSubscription, Reminder

logger = get_logger("reminders.channels")

RESEND_API_URL = "https://api.resend.com/emails"

# Push services answer 404/410 for expired or unsubscribed endpoints
GONE_STATUS_CODES = {404, 410}


@dataclass
class NotificationPayload:
    """What a reminder looks like on the wire."""
    title: str
    body: str
    data: dict = field(default_factory=dict)

    @classmethod
    def for_reminder(cls, reminder: Reminder) -> "NotificationPayload":
        return cls(
            title=reminder.title or "Reminder",
            body=reminder.message or f"You have a {reminder.type or 'custom'} reminder",
            data={"reminderId": reminder.id},
        )

    def to_json(self) -> str:
        return json.dumps({"title": self.title, "body": self.body, "data": self.data})


@dataclass
class Recipient:
    """Delivery addresses for one user."""
    user_id: str | None
    email: str | None = None
    subscriptions: list[PushSubscription] = field(default_factory=list)


@dataclass
class ChannelResult:
    """Outcome of one send attempt."""
    channel: str
    target: str
    ok: bool
    error: str | None = None
    status_code: int | None = None
    gone: bool = False
    dry_run: bool = False

    def to_meta(self) -> dict:
        meta = {"channel": self.channel, "ok": self.ok}
        if self.status_code is not None:
            meta["status_code"] = self.status_code
        if self.error:
            meta["error"] = sanitize_for_log(self.error)
        if self.gone:
            meta["gone"] = True
        if self.dry_run:
            meta["dry_run"] = True
        return meta


class NotificationChannel(ABC):
    """Capability interface for a delivery channel."""

    # Recipient fields this channel reads ("email", "subscriptions")
    requires: frozenset[str] = frozenset()

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel identifier."""
        pass

    @abstractmethod
    def targets(self, recipient: Recipient) -> list[Any]:
        """Targets to send to for this recipient."""
        pass

    @abstractmethod
    async def send(self, target: Any, payload: NotificationPayload) -> ChannelResult:
        """Send one payload to one target."""
        pass


class ResendEmailChannel(NotificationChannel):
    """Email via the Resend REST API."""

    requires = frozenset({"email"})

    def __init__(self, api_key: str, sender: str, timeout: float = 10):
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "email"

    def targets(self, recipient: Recipient) -> list[str]:
        return [recipient.email] if recipient.email else []

    async def send(self, target: str, payload: NotificationPayload) -> ChannelResult:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "from": self.sender,
                        "to": [target],
                        "subject": payload.title,
                        "text": payload.body
                    },
                    timeout=self.timeout
                )
        except httpx.HTTPError as e:
            return ChannelResult(self.name, target, ok=False, error=f"{type(e).__name__}: {e}")

        if response.status_code not in (200, 201):
            return ChannelResult(
                self.name,
                target,
                ok=False,
                status_code=response.status_code,
                error=response.text or f"Resend returned {response.status_code}"
            )

        return ChannelResult(self.name, target, ok=True, status_code=response.status_code)


class WebPushChannel(NotificationChannel):
    """Web Push via pywebpush (VAPID)."""

    requires = frozenset({"subscriptions"})

    def __init__(self, private_key: str, subject: str, timeout: float = 10):
        self.private_key = private_key
        self.subject = subject
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "push"

    def targets(self, recipient: Recipient) -> list[PushSubscription]:
        return list(recipient.subscriptions)

    async def send(self, target: PushSubscription, payload: NotificationPayload) -> ChannelResult:
        try:
            # pywebpush is blocking (requests) and mutates the claims dict
            await asyncio.to_thread(
                webpush,
                subscription_info=target.subscription_info(),
                data=payload.to_json(),
                vapid_private_key=self.private_key,
                vapid_claims={"sub": self.subject},
                timeout=self.timeout
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            return ChannelResult(
                self.name,
                target.endpoint,
                ok=False,
                status_code=status,
                gone=status in GONE_STATUS_CODES,
                error=str(e)
            )

        return ChannelResult(self.name, target.endpoint, ok=True)


class DryRunChannel(NotificationChannel):
    """Logs what would be sent. Used outside production for unconfigured channels."""

    def __init__(self, name: str):
        self._name = name
        self.requires = frozenset({"email"}) if name == "email" else frozenset()

    @property
    def name(self) -> str:
        return self._name

    def targets(self, recipient: Recipient) -> list[str]:
        if self._name == "email":
            return [recipient.email] if recipient.email else []
        return [recipient.user_id] if recipient.user_id else []

    async def send(self, target: str, payload: NotificationPayload) -> ChannelResult:
        logger.info(
            f"[dev] Would send {self._name} to {sanitize_for_log(target)}: "
            f"{payload.title} - {payload.body}"
        )
        return ChannelResult(self._name, str(target), ok=True, dry_run=True)


class ChannelRegistry:
    """Configured delivery channels, in registration order."""

    def __init__(self):
        self._channels: dict[str, NotificationChannel] = {}

    def register(self, channel: NotificationChannel) -> None:
        self._channels[channel.name] = channel

    def get(self, name: str) -> NotificationChannel | None:
        return self._channels.get(name)

    def all_channels(self) -> list[NotificationChannel]:
        return list(self._channels.values())

    def requires(self, field_name: str) -> bool:
        """Whether any channel reads this recipient field."""
        return any(field_name in channel.requires for channel in self._channels.values())

    def __len__(self) -> int:
        return len(self._channels)


def build_channel_registry() -> ChannelRegistry:
    """Resolve the delivery channels from configuration."""
    registry = ChannelRegistry()
    dry_run = config.APP_ENV != "production"

    if config.RESEND_API_KEY:
        registry.register(ResendEmailChannel(config.RESEND_API_KEY, config.RESEND_FROM))
    elif dry_run:
        registry.register(DryRunChannel("email"))

    if config.WEB_PUSH_PUBLIC_KEY and config.WEB_PUSH_PRIVATE_KEY:
        registry.register(WebPushChannel(config.WEB_PUSH_PRIVATE_KEY, config.WEB_PUSH_SUBJECT))
    elif dry_run:
        registry.register(DryRunChannel("push"))

    names = ", ".join(channel.name for channel in registry.all_channels()) or "none"
    logger.info(f"Notification channels: {names}")
    return registry
