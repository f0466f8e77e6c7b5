"""
Outgoing e‑mail over SMTP.

``Mailer`` renders the payment reminder and delivers messages with
``smtplib``.  A connection is opened per message; reminders are sent
rarely and in small batches, so pooling is not worth the complexity.
Every send either succeeds or raises, and failures are logged with the
recipient so a batch caller can count them.
"""

import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Dict, Optional

logger = logging.getLogger(__name__)

REMINDER_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
    .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
    .header {{ background-color: #4F46E5; color: white; padding: 20px; text-align: center; }}
    .content {{ padding: 20px; background-color: #f9fafb; }}
    .footer {{ padding: 20px; text-align: center; color: #666; font-size: 12px; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>{brand}</h1></div>
    <div class="content">
      <h2>Payment Reminder</h2>
      <p>Dear {name},</p>
      <p>This is a reminder that your payment for <strong>{league}</strong> registration is still pending.</p>
      <p><strong>Registration Details:</strong></p>
      <ul>
        <li>League: {league}</li>
        <li>Amount: &#8377;{amount}</li>
        <li>Registration ID: {registration_id}</li>
      </ul>
      <p>Please complete your payment to secure your spot in the league.</p>
      <p>If you have already made the payment, please ignore this email.</p>
      <p>Best regards,<br>{brand} Team</p>
    </div>
    <div class="footer"><p>This is an automated email. Please do not reply to this email.</p></div>
  </div>
</body>
</html>
"""


class Mailer:
    """SMTP mail sender."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        use_ssl: bool = False,
        from_name: str = "Turbo Cricket League",
        league_names: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.use_ssl = use_ssl
        self.from_name = from_name
        self.league_names = league_names or {}
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            use_ssl=settings.smtp_ssl,
            from_name=settings.mail_from_name,
            league_names=settings.league_names,
        )

    def league_name(self, league_type: str) -> str:
        return self.league_names.get(league_type, league_type)

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.timeout, context=ssl.create_default_context()
            )
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.use_tls:
            server.starttls(context=ssl.create_default_context())
        return server

    def send_email(self, to: str, subject: str, html_body: str) -> None:
        """Send one HTML message.  Raises ``smtplib.SMTPException``/``OSError`` on failure."""
        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.username))
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")

        try:
            with self._connect() as server:
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to, e)
            raise
        logger.info("Email sent to %s", to)

    def render_payment_reminder(
        self, name: str, league_type: str, amount: int, registration_id: str
    ) -> str:
        return REMINDER_TEMPLATE.format(
            brand=html.escape(self.from_name),
            name=html.escape(name),
            league=html.escape(self.league_name(league_type)),
            amount=amount,
            registration_id=html.escape(registration_id),
        )

    def send_payment_reminder(
        self,
        email: str,
        name: str,
        league_type: str,
        amount: int,
        registration_id: str,
    ) -> None:
        """Send the pending‑payment reminder for one registration."""
        subject = f"Payment Reminder - {self.league_name(league_type)} Registration"
        body = self.render_payment_reminder(name, league_type, amount, registration_id)
        self.send_email(email, subject, body)
