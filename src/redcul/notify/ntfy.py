"""ntfy.sh notification integration."""

import logging

import httpx

from redcul.config import RedculConfig

logger = logging.getLogger(__name__)


class NtfyNotifier:
    """Sends notifications via ntfy.sh service."""

    def __init__(self, config: RedculConfig):
        self.config = config
        self.topic_url = config.ntfy_topic
        self.client = httpx.Client(
            timeout=config.ntfy_request_timeout,
            headers={"User-Agent": config.user_agent},
        )

    def send_notification(
        self,
        message: str,
        title: str | None = None,
        priority: str = "default",
        tags: str | None = None,
    ) -> bool:
        """Send a notification via ntfy."""
        if not self.topic_url:
            logger.debug("No ntfy topic configured, skipping notification")
            return False

        try:
            headers = {}

            if title:
                try:
                    headers["Title"] = title.encode("latin1").decode("latin1")
                except UnicodeEncodeError:
                    headers["Title"] = title.encode("ascii", errors="ignore").decode("ascii")

            if priority != "default":
                headers["Priority"] = priority

            if tags:
                headers["Tags"] = tags

            response = self.client.post(
                self.topic_url,
                data=message.encode("utf-8"),
                headers=headers,
            )

            response.raise_for_status()
            logger.debug(f"Sent notification: {title or message[:50]}")
            return True

        except httpx.RequestError as e:
            logger.exception(f"Failed to send notification: {e}")
            return False
        except httpx.HTTPStatusError as e:
            logger.exception(
                f"Notification service error {e.response.status_code}: {e.response.text}",
            )
            return False

    def notify_upload_complete(self, release: str, labels: list[str]) -> bool:
        """Send notification when an upload was accepted."""
        return self.send_notification(
            f"Uploaded {', '.join(labels)} for {release}",
            title="✅ Upload Complete",
            tags="redcul,upload,completed",
        )

    def notify_nothing_to_do(self, release: str) -> bool:
        return self.send_notification(
            f"No variants missing for {release}",
            title="Nothing To Upload",
            priority="low",
            tags="redcul,skipped",
        )

    def notify_error(self, error_message: str, context: str | None = None) -> bool:
        """Send error notification."""
        message = f"Error: {error_message}"
        if context:
            message += f"\nContext: {context}"

        return self.send_notification(
            message,
            title="❌ redcul Error",
            priority="high",
            tags="redcul,error,alert",
        )

    def notify_batch_completed(self, uploaded: int, failed: int, skipped: int) -> bool:
        """Send a summary after a batch run."""
        if failed == 0:
            title = "✅ Batch Complete"
        else:
            title = "⚠️ Batch Complete (with errors)"

        return self.send_notification(
            f"{uploaded} uploaded, {skipped} skipped, {failed} failed",
            title=title,
            tags="redcul,batch,completed",
        )
