"""
Discord error notifications for unexpected server errors.
"""
import httpx
import traceback
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import logging
from app.config import settings

logger = logging.getLogger(__name__)


class DiscordErrorNotifier:
    """Send error notifications to a Discord webhook"""

    def __init__(self, webhook_url: str):
        self.webhook_url = webhook_url

    def build_payload(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        request_info: Optional[Dict[str, Any]] = None
    ) -> dict:
        error_type = type(error).__name__
        error_message = str(error)
        error_traceback = ''.join(traceback.format_exception(type(error), error, error.__traceback__))

        if len(error_traceback) > 900:
            error_traceback = error_traceback[-900:]

        embed = {
            "title": f"Error: {error_type}",
            "description": error_message[:2000] if error_message else "No message",
            "color": 15158332,  # Red
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "fields": []
        }

        if request_info:
            request_details = []
            if request_info.get('method'):
                request_details.append(f"**Method:** {request_info['method']}")
            if request_info.get('url'):
                request_details.append(f"**URL:** {request_info['url']}")
            if request_info.get('client_host'):
                request_details.append(f"**Client:** {request_info['client_host']}")

            if request_details:
                embed["fields"].append({
                    "name": "Request",
                    "value": "\n".join(request_details),
                    "inline": False
                })

        if context:
            context_details = [f"**{k}:** {v}" for k, v in context.items()]
            embed["fields"].append({
                "name": "Context",
                "value": "\n".join(context_details)[:1024],
                "inline": False
            })

        embed["fields"].append({
            "name": "Traceback",
            "value": f"```python\n{error_traceback}\n```",
            "inline": False
        })

        embed["fields"].append({
            "name": "Environment",
            "value": f"**Env:** {settings.environment}",
            "inline": True
        })

        return {
            "embeds": [embed],
            "username": "Campaign API Error Monitor"
        }

    async def send_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        request_info: Optional[Dict[str, Any]] = None
    ):
        """Send error notification to Discord; never raises"""
        try:
            payload = self.build_payload(error, context, request_info)

            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(self.webhook_url, json=payload)
                if response.status_code == 204:
                    logger.info(f"Error notification sent: {type(error).__name__}")

        except Exception as e:
            logger.error(f"Failed to send error to Discord: {e}")


# Global error notifier instance
error_notifier = None
if settings.discord_error_webhook_url:
    error_notifier = DiscordErrorNotifier(settings.discord_error_webhook_url)
