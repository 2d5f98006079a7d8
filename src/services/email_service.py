"""
Email notifier backed by Amazon SES.
Sends plain-text expiry alerts to drug owners.
"""
from abc import ABC, abstractmethod
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from src.core import config
from src.core.exceptions import NotificationException
from src.core.logger import get_logger

logger = get_logger(__name__)


class Notifier(ABC):
    """Delivers a message to a recipient."""

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str) -> None:
        """Send a message; raises NotificationException on any failure."""
        pass


class SesEmailNotifier(Notifier):
    """Notifier that sends emails through SES."""

    def __init__(self, sender: str = None, timeout_seconds: int = None):
        timeout = timeout_seconds or config.settings.notification_timeout_seconds
        self.sender = sender or config.settings.ses_sender_email
        self.ses_client = boto3.client(
            'ses',
            region_name=config.settings.aws_region,
            config=Config(connect_timeout=timeout, read_timeout=timeout, retries={'max_attempts': 1})
        )

    def send(self, recipient: str, subject: str, body: str) -> None:
        """
        Send a plain-text email.

        Args:
            recipient: Destination email address
            subject: Email subject
            body: Plain-text body

        Raises:
            NotificationException: If the email cannot be sent
        """
        if not recipient or not recipient.strip():
            raise NotificationException("Recipient email address is empty")
        if not self.sender:
            raise NotificationException("Sender email address is not configured")

        try:
            response = self.ses_client.send_email(
                Source=self.sender,
                Destination={'ToAddresses': [recipient]},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': {'Text': {'Data': body, 'Charset': 'UTF-8'}}
                }
            )
            logger.info("Email sent to %s, message id %s", recipient, response.get('MessageId'))

        except (ClientError, BotoCoreError) as e:
            raise NotificationException(f"Failed to send email to {recipient}: {str(e)}") from e
        except Exception as e:
            raise NotificationException(f"Unexpected error sending email to {recipient}: {str(e)}") from e
