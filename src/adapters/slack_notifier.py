"""Slack incoming-webhook notification adapter.

Delivery is a strategy picked once at startup: production posts to each
channel's own webhook, simulation reroutes everything to the default webhook
with a visible test prefix. Nothing else in the code checks debug mode.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Optional, Protocol

from adapters.notification_formatting import (
    format_debug_message,
    format_error_message,
    format_files_message,
    format_meeting_message,
    with_test_prefix,
)
from core.config import AppConfig
from core.errors import DeliveryError
from core.models import Channel, FileGroup, MatchedOccurrence, SourceItem
from core.ports import MessengerPort

LOGGER = logging.getLogger(__name__)


class SlackWebhookClient:
    """Messenger adapter that POSTs JSON payloads to Slack webhooks."""

    def __init__(self, timeout: float = 10) -> None:
        self._timeout = timeout

    def send_message(self, webhook_url: str, payload: dict) -> int:
        """Send one payload and return the HTTP status code."""

        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(webhook_url, data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # Blocking call; ticks run sequentially.
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                return response.status
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise DeliveryError(f"Webhook error {e.code}: {body}") from e
        except urllib.error.URLError as e:
            raise DeliveryError(f"Webhook unreachable: {e.reason}") from e


class Delivery(Protocol):
    def deliver(self, channel: Channel, payload: dict) -> None:
        ...


class WebhookDelivery:
    """Production strategy: post to the channel's own webhook."""

    def __init__(self, messenger: MessengerPort) -> None:
        self._messenger = messenger

    def deliver(self, channel: Channel, payload: dict) -> None:
        status = self._messenger.send_message(channel.webhook, payload)
        if status >= 300:
            raise DeliveryError(f"Webhook for {channel.name} answered {status}")


class SimulatedDelivery:
    """Test strategy: post to the default webhook, marked as a test."""

    def __init__(self, messenger: MessengerPort, default_webhook: str) -> None:
        self._messenger = messenger
        self._default_webhook = default_webhook

    def deliver(self, channel: Channel, payload: dict) -> None:
        LOGGER.info("Simulated delivery for %s rerouted to the default webhook", channel.name)
        status = self._messenger.send_message(
            self._default_webhook, with_test_prefix(payload, channel.name)
        )
        if status >= 300:
            raise DeliveryError(f"Default webhook answered {status}")


def build_delivery(messenger: MessengerPort, config: AppConfig) -> Delivery:
    if config.debug_mode:
        return SimulatedDelivery(messenger, config.default_webhook)
    return WebhookDelivery(messenger)


class SlackNotifier:
    """Notifier adapter that formats announcements and hands them to a delivery."""

    def __init__(self, delivery: Delivery, config: AppConfig) -> None:
        self._delivery = delivery
        self._config = config
        community = config.meeting(config.announcements.community_prefix)
        self._community_channel: Optional[str] = community.slack_channel if community else None

    def announce_meeting(self, meeting: MatchedOccurrence, channel: Channel) -> None:
        payload = format_meeting_message(
            meeting, channel, self._community_channel, self._config.announcements
        )
        self._delivery.deliver(channel, payload)

    def announce_files(self, group: FileGroup, items: list[SourceItem], channel: Channel) -> None:
        payload = format_files_message(items, self._config.announcements)
        self._delivery.deliver(channel, payload)
        LOGGER.info("Announced %s files for %r on %s", len(items), group.prefix, channel.name)


class SlackErrorReporter:
    """Reports failures and warnings to the default webhook.

    Reporting never raises: a broken error channel is logged locally so it
    cannot take the tick down with it.
    """

    def __init__(self, messenger: MessengerPort, default_webhook: str) -> None:
        self._messenger = messenger
        self._default_webhook = default_webhook

    def _post(self, payload: dict) -> None:
        if not self._default_webhook:
            LOGGER.warning("No default webhook configured, report not sent")
            return
        try:
            self._messenger.send_message(self._default_webhook, payload)
        except Exception:
            LOGGER.exception("Failed to deliver report to the default webhook")

    def report(self, title: str, detail: str) -> None:
        LOGGER.error("%s: %s", title, detail)
        self._post(format_error_message(title, detail))

    def warn(self, message: str) -> None:
        LOGGER.warning("%s", message)
        self._post(format_debug_message(message))
