"""Payment provider integration.

No provider is wired up yet: upgrades report the flow that would start, and
webhooks are acknowledged without side effects.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)


async def trigger_upgrade(user_id: int, new_plan: str) -> dict[str, Any]:
    """Start the checkout flow for moving ``user_id`` to ``new_plan``."""
    logger.info("Upgrade requested: user=%s plan=%s", user_id, new_plan)
    return {
        "success": True,
        "message": f"Payment flow for upgrading to {new_plan} would start here.",
    }


async def handle_webhook(event: dict[str, Any]) -> dict[str, Any]:
    """Acknowledge a provider webhook event."""
    logger.info("Payment webhook received: %s", event.get("type", "unknown"))
    return {"success": True}
