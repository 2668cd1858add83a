"""Order confirmation template."""

from notifier.notification.notification import NotificationChannel, NotificationType


class OrderCreatedTemplate:
    notification_type = NotificationType.ORDER_CREATED.value
    channels = (NotificationChannel.EMAIL.value,)
    locale = "en"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number") or context.get("entity_id", "N/A")
        total = context.get("total")
        lines = [
            context.get("message", ""),
            "",
            f"Order Number: #{order_number}",
        ]
        if total is not None:
            lines.append(f"Total: {total}")
        return {
            "subject": f"Order Confirmation: #{order_number}",
            "body": "\n".join(lines),
        }
