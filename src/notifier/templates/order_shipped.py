"""Order shipped template: sent when an order is handed to the carrier."""

from notifier.notification.notification import NotificationChannel, NotificationType


class OrderShippedTemplate:
    notification_type = NotificationType.ORDER_SHIPPED.value
    channels = (
        NotificationChannel.EMAIL.value,
        NotificationChannel.SMS.value,
        NotificationChannel.PUSH.value,
    )
    locale = "en"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number") or context.get("entity_id", "N/A")
        tracking_number = context.get("tracking_number")
        body = f"{context.get('message', '')}\n\nOrder: #{order_number}"
        if tracking_number:
            carrier = context.get("carrier", "the carrier")
            body += f"\nTracking Number: {tracking_number} ({carrier})"
        return {
            "subject": context.get("title") or "Your order has shipped",
            "body": body,
        }
