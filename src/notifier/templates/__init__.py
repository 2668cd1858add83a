"""Template registry: maps (notification type, channel, locale) to a template.

Templates render ``subject`` and ``body`` from the notification's title,
message and context. Lookups that miss fall back to the default locale and
then to the generic template, so a missing template never blocks delivery.
"""

from notifier.templates.generic import GenericNotificationTemplate
from notifier.templates.order_created import OrderCreatedTemplate
from notifier.templates.order_shipped import OrderShippedTemplate
from notifier.templates.payment_received import PaymentReceivedTemplate
from notifier.templates.welcome import WelcomeTemplate

DEFAULT_LOCALE = "en"

_TEMPLATES = (
    OrderCreatedTemplate,
    OrderShippedTemplate,
    PaymentReceivedTemplate,
    WelcomeTemplate,
)

TEMPLATE_REGISTRY: dict[tuple[str, str, str], type] = {
    (template.notification_type, channel, template.locale): template
    for template in _TEMPLATES
    for channel in template.channels
}


def find_template(notification_type: str, channel: str, locale: str = DEFAULT_LOCALE):
    """Look up a template, falling back to the default locale and then the generic template."""
    for key in ((notification_type, channel, locale), (notification_type, channel, DEFAULT_LOCALE)):
        template_cls = TEMPLATE_REGISTRY.get(key)
        if template_cls is not None:
            return template_cls
    return GenericNotificationTemplate
