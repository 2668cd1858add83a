"""Payment receipt template."""

from notifier.notification.notification import NotificationChannel, NotificationType


class PaymentReceivedTemplate:
    notification_type = NotificationType.PAYMENT_RECEIVED.value
    channels = (NotificationChannel.EMAIL.value, NotificationChannel.SMS.value)
    locale = "en"

    @staticmethod
    def render(context: dict) -> dict:
        amount = context.get("amount", "")
        currency = context.get("currency", "")
        payment_id = context.get("entity_id", "N/A")
        return {
            "subject": "Payment Receipt",
            "body": (
                f"{context.get('message', '')}\n\n"
                f"Amount: {amount} {currency}".rstrip()
                + f"\nPayment Reference: {payment_id}"
            ),
        }
