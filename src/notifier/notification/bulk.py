"""Bulk fan-out: one notification to many recipients in fixed-size batches.

Recipients are processed batch by batch with a short pause in between so
downstream providers are not flooded. The pause blocks only the bulk call.
A recipient whose send raises gets a failed result of its own; the rest of
the run carries on.
"""

import time

import structlog

from notifier.notification.notification import DEFAULT_CHANNELS
from notifier.notification.results import ChannelError, DeliveryResult, ErrorKind

logger = structlog.get_logger(__name__)


class BulkBatcher:
    def __init__(self, orchestrator, batch_size=100, pause=0.1):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.orchestrator = orchestrator
        self.batch_size = batch_size
        self.pause = pause

    def run(self, payload) -> list[DeliveryResult]:
        batches = list(payload.chunks(self.batch_size))
        results = []

        logger.info(
            "Bulk notification started",
            notification_type=payload.notification_type,
            recipients=len(payload.user_ids),
            batches=len(batches),
        )

        for index, batch in enumerate(batches, start=1):
            for user_id in batch:
                results.append(self._send_one(payload, user_id))

            logger.debug("Bulk batch processed", batch=index, size=len(batch))
            if index < len(batches) and self.pause > 0:
                time.sleep(self.pause)

        failed = sum(1 for r in results if r.failed_channels)
        logger.info("Bulk notification finished", recipients=len(results), with_failures=failed)
        return results

    def _send_one(self, payload, user_id) -> DeliveryResult:
        try:
            return self.orchestrator.send_notification(payload.for_user(user_id))
        except Exception as exc:
            logger.error(
                "Bulk recipient failed",
                user_id=str(user_id),
                notification_type=payload.notification_type,
                error=str(exc),
            )
            return DeliveryResult(
                notification_id=None,
                user_id=str(user_id),
                failed_channels=list(payload.channels or DEFAULT_CHANNELS),
                errors=[ChannelError(channel="all", error=str(exc), kind=ErrorKind.ERROR.value)],
            )
