# hrcloud/notifications/notification_service.py
import logging

from flask_mail import Message
from sqlalchemy.exc import SQLAlchemyError

from hrcloud.errors import NotificationError
from hrcloud.extensions import db, mail
from hrcloud.models import Notification, Profile

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Delivers in-app notifications and, when the recipient has an address,
    the matching email through Flask-Mail.

    Any delivery failure is raised as NotificationError so batch callers can
    count it and move on.
    """

    def __init__(self, mailer=None, session=None):
        self.mailer = mailer or mail
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def notify(self, user_id, notification_type, title, message, link=None,
               company_id=None, email=None):
        """
        ``email`` is an optional (subject, html) pair from EmailTemplates.
        Returns the recipient's email address, or None if no email was sent.
        """
        try:
            self.session.add(Notification(
                user_id=user_id,
                company_id=company_id,
                type=notification_type,
                title=title,
                message=message,
                link=link,
            ))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise NotificationError(f"Could not store notification for {user_id}: {e}") from e

        profile = self.session.get(Profile, user_id)
        if email is None or profile is None or not profile.email:
            return None

        subject, html = email
        try:
            self.mailer.send(Message(subject=subject, recipients=[profile.email], html=html))
        except Exception as e:
            raise NotificationError(f"Failed to send email to {profile.email}: {e}") from e

        logger.info(f"Email sent to {profile.email}: {subject}")
        return profile.email
