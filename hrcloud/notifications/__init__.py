from .email_templates import EmailTemplates
from .notification_service import NotificationDispatcher

__all__ = ["EmailTemplates", "NotificationDispatcher"]
