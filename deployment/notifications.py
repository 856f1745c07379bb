import logging
from typing import Optional

import requests

from .orchestrator import DeploymentRun

logger = logging.getLogger(__name__)


class SlackNotifier:
    """Posts deployment alerts to a Slack webhook"""

    def __init__(self, webhook_url: str, timeout: int = 10):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def build_payload(self, run: DeploymentRun, message: str) -> dict:
        fields = [
            {"title": "Network", "value": run.network, "short": True},
            {"title": "State", "value": run.state.value, "short": True},
            {"title": "Token", "value": run.token_address or "-", "short": True},
            {"title": "Crowdsale", "value": run.crowdsale_address or "-", "short": True},
        ]
        if run.failed_step:
            fields.append({"title": "Failed step", "value": run.failed_step, "short": True})
        return {
            "text": f"DMT deployment alert: {message}",
            "attachments": [{"fields": fields}],
        }

    def send(self, run: DeploymentRun, message: str):
        response = requests.post(self.webhook_url, json=self.build_payload(run, message), timeout=self.timeout)
        response.raise_for_status()


def notify_failure(notifier: Optional[SlackNotifier], run: DeploymentRun, message: str) -> bool:
    """Send an alert if a notifier is configured; alert failures are logged, not raised."""
    if notifier is None:
        return False
    try:
        notifier.send(run, message)
    except requests.exceptions.RequestException as e:
        logger.error(f"Failed to send Slack alert: {e}")
        return False
    return True
