# notifications.py
import logging
from datetime import datetime, timezone

import requests

import config

logger = logging.getLogger(__name__)


def notify_equipment_added(equipment_id, webhook_url=None):
    """POST a "new equipment" event to the configured webhook.

    Returns True when the webhook accepted it, False when it failed or no
    webhook is configured. Never raises: a failed notification must not
    undo the creation.
    """
    webhook_url = webhook_url or config.WEBHOOK_URL
    if not webhook_url:
        return False

    payload = {
        "equipmentId": equipment_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": config.WEBHOOK_SOURCE,
    }
    try:
        response = requests.post(webhook_url, json=payload, timeout=config.WEBHOOK_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error("Webhook notification failed for %s: %s", equipment_id, e)
        return False

    logger.info("Webhook notified for equipment %s", equipment_id)
    return True
