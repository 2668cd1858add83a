"""Generic template used when no type-specific one is registered."""


class GenericNotificationTemplate:
    notification_type = None
    channels = ()
    locale = "en"

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "subject": context.get("title", ""),
            "body": context.get("message", ""),
        }
