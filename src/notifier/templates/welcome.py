"""Welcome template: sent when a user registers."""

from notifier.notification.notification import NotificationChannel, NotificationType


class WelcomeTemplate:
    notification_type = NotificationType.WELCOME.value
    channels = (NotificationChannel.EMAIL.value,)
    locale = "en"

    @staticmethod
    def render(context: dict) -> dict:
        first_name = context.get("first_name", "there")
        return {
            "subject": context.get("title") or f"Welcome, {first_name}!",
            "body": (
                f"Hi {first_name},\n\n"
                f"{context.get('message', '')}\n\n"
                "You can change which notifications you receive at any time "
                "from your notification settings."
            ),
        }
