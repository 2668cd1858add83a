"""Notifier bounded context: multi-channel notification delivery.

Fans a single logical notification out to in-app, email, SMS, push and
webhook channels. Honours per-user channel preferences, per-type overrides
and quiet hours, supports scheduled delivery and bulk fan-out, and tracks
the per-channel outcome of every delivery attempt.
"""

from protean.domain import Domain

from notifier.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

notifier = Domain(name="notifier")
