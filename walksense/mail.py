# walksense/mail.py
import json
import threading
import sib_api_v3_sdk
from flask import current_app
from sib_api_v3_sdk.rest import ApiException
from walksense.logging_config import setup_logging

logger = setup_logging()

MAILER_EXTENSION = 'walksense_mailer'


def load_email_config(json_path):
    if not json_path:
        return None
    try:
        with open(json_path, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        logger.warning(f"Email configuration file not found: {json_path}")
        return None
    except json.JSONDecodeError:
        logger.error("Error decoding the email configuration file.")
        return None


class BrevoMailer:
    """Sends transactional email through the Brevo API."""

    def __init__(self, email_config):
        self.email_config = email_config or {}

    @property
    def configured(self):
        return bool(self.email_config.get('api_key') and self.email_config.get('sender_email'))

    def send(self, to, subject, html_content, to_name=None):
        if not self.configured:
            logger.warning(f"Email delivery is not configured; skipped '{subject}' to {to}.")
            return False

        configuration = sib_api_v3_sdk.Configuration()
        configuration.api_key['api-key'] = self.email_config['api_key']
        api_client = sib_api_v3_sdk.ApiClient(configuration)
        api_instance = sib_api_v3_sdk.TransactionalEmailsApi(api_client)

        recipient = {"email": to}
        if to_name:
            recipient["name"] = to_name

        send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(
            to=[recipient],
            sender={
                "name": self.email_config.get('sender_name', 'WalkSense'),
                "email": self.email_config['sender_email'],
            },
            subject=subject,
            html_content=html_content,
        )

        try:
            api_response = api_instance.send_transac_email(send_smtp_email)
            logger.info(f"Email '{subject}' sent to {to}: {api_response}")
            return True
        except ApiException as e:
            logger.error(f"Exception when calling TransactionalEmailsApi->send_transac_email: {e}")
            return False


def get_mailer(app=None):
    app = app or current_app
    mailer = app.extensions.get(MAILER_EXTENSION)
    if mailer is None:
        mailer = BrevoMailer(load_email_config(app.config.get('EMAIL_CONFIG_PATH')))
        app.extensions[MAILER_EXTENSION] = mailer
    return mailer


def _deliver(mailer, to, subject, html_content, to_name):
    try:
        mailer.send(to, subject, html_content, to_name=to_name)
    except Exception as e:
        # Delivery is best-effort; the caller has already responded
        logger.error(f"Failed to send email '{subject}' to {to}: {e}")


def send_email(to, subject, html_content, to_name=None):
    """Send an email without letting delivery failures reach the caller."""
    mailer = get_mailer()
    if current_app.config.get('MAIL_ASYNC', True):
        thread = threading.Thread(
            target=_deliver,
            args=(mailer, to, subject, html_content, to_name),
            daemon=True,
        )
        thread.start()
        return thread
    _deliver(mailer, to, subject, html_content, to_name)
    return None
