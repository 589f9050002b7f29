"""Slack connector for sending content workflow notifications."""
import logging
from typing import Any, Dict, List, Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ..base import NotificationConnector, NotificationEvent
from ...models.notification import NotificationType

logger = logging.getLogger(__name__)

EVENT_EMOJI = {
    NotificationType.APPROVAL_REQUESTED: ":eyes:",
    NotificationType.CONTENT_APPROVED: ":white_check_mark:",
    NotificationType.CONTENT_REJECTED: ":x:",
    NotificationType.CONTENT_PUBLISHED: ":rocket:",
    NotificationType.COMMENT_ADDED: ":speech_balloon:",
}


class SlackConnector(NotificationConnector):
    """Posts workflow events to Slack channels.

    Config format:
    {
        "bot_token": "xoxb-...",     # Slack bot token
        "channels": ["#content"]     # Channels that receive every event
    }
    """

    def __init__(self, config: Dict[str, Any], client: Optional[AsyncWebClient] = None):
        super().__init__(config)
        self.client = client or AsyncWebClient(token=config.get("bot_token"))
        self.channels: List[str] = list(config.get("channels") or [])

    def _get_connector_type(self) -> str:
        return "slack"

    async def send_notification(self, event: NotificationEvent) -> Dict[str, Any]:
        """Post one message per configured channel.

        Returns:
            Dict with success status and message_id (Slack timestamp)
        """
        if not self.channels:
            return {"success": False, "error": "No Slack channels configured"}

        try:
            blocks = self._build_event_blocks(event)

            results = []
            for channel in self.channels:
                response = await self.client.chat_postMessage(
                    channel=channel,
                    blocks=blocks,
                    text=event.message,  # Fallback text
                )

                if response["ok"]:
                    results.append({
                        "recipient": channel,
                        "message_id": response["ts"],  # Slack timestamp serves as message ID
                        "channel": response["channel"],
                    })
                    logger.info(f"Sent Slack notification for content {event.content_id} to {channel}")
                else:
                    logger.error(f"Failed to send Slack notification: {response.get('error')}")

            if results:
                return {
                    "success": True,
                    "message_id": results[0]["message_id"],
                    "results": results,
                }
            return {"success": False, "error": "No messages sent successfully"}

        except SlackApiError as e:
            logger.error(f"Slack API error: {e.response['error']}")
            return {"success": False, "error": f"Slack API error: {e.response['error']}"}
        except Exception as e:
            logger.error(f"Unexpected error sending Slack notification: {e}")
            return {"success": False, "error": str(e)}

    async def test_connection(self) -> Dict[str, Any]:
        """Test the Slack connection by calling auth.test."""
        try:
            response = await self.client.auth_test()
            if response["ok"]:
                return {
                    "success": True,
                    "message": f"Connected as {response['user']} to {response['team']}",
                }
            return {"success": False, "message": f"Connection failed: {response.get('error')}"}
        except SlackApiError as e:
            return {"success": False, "message": f"Slack API error: {e.response['error']}"}
        except Exception as e:
            return {"success": False, "message": f"Error: {str(e)}"}

    def _build_event_blocks(self, event: NotificationEvent) -> List[Dict]:
        """Build Slack Block Kit blocks for a workflow event."""
        emoji = EVENT_EMOJI.get(event.type, ":memo:")

        blocks: List[Dict] = [
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"{emoji} {event.message}"},
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Content:*\n{event.content_title}"},
                    {"type": "mrkdwn", "text": f"*By:*\n{event.actor_name or 'system'}"},
                ],
            },
        ]

        if event.comment:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Comments:*\n{event.comment}"},
            })

        if event.link:
            blocks.append({
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {"type": "plain_text", "text": "Open content"},
                        "url": event.link,
                        "style": "primary",
                    }
                ],
            })

        return blocks
