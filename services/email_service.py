"""Email Service.
Sends transactional email through the Mailgun HTTP API. One sender is built per
application in ``create_app`` and shared by all requests.
"""
import requests
from flask import current_app


class EmailSender:

    def __init__(self, api_key=None, domain=None, app_url='http://localhost:3000',
                 sender_name='Coffee Diary', api_base='https://api.mailgun.net/v3',
                 timeout=10, suppress_send=False, session=None):
        self.api_key = api_key
        self.domain = domain
        self.app_url = app_url.rstrip('/')
        self.sender_name = sender_name
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout
        self.suppress_send = suppress_send
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get('MAILGUN_API_KEY'),
            domain=config.get('MAILGUN_DOMAIN'),
            app_url=config.get('APP_URL', 'http://localhost:3000'),
            sender_name=config.get('MAIL_SENDER_NAME', 'Coffee Diary'),
            api_base=config.get('MAILGUN_API_BASE', 'https://api.mailgun.net/v3'),
            timeout=config.get('MAIL_TIMEOUT', 10),
            suppress_send=config.get('MAIL_SUPPRESS_SEND', False),
        )

    @property
    def is_configured(self):
        return bool(self.api_key and self.domain)

    @property
    def sender(self):
        return f'{self.sender_name} <noreply@{self.domain}>'

    def reset_url(self, token):
        return f'{self.app_url}/reset-password/{token}'

    def confirmation_url(self, token):
        return f'{self.app_url}/confirm-email/{token}'

    def send_message(self, to, subject, text, html):
        """Send one message. Returns True when the provider accepted it."""
        if self.suppress_send:
            current_app.logger.info(f'Email sending suppressed: "{subject}" to {to}')
            return True

        if not self.is_configured:
            current_app.logger.warning(f'Email not configured, cannot send "{subject}" to {to}')
            return False

        try:
            response = self.session.post(
                f'{self.api_base}/{self.domain}/messages',
                auth=('api', self.api_key),
                data={
                    'from': self.sender,
                    'to': to,
                    'subject': subject,
                    'text': text,
                    'html': html,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            current_app.logger.error(f'Failed to send email to {to}: {e}')
            return False

        if not response.ok:
            current_app.logger.error(f'Mailgun API error: {response.status_code} - {response.text}')
            return False

        current_app.logger.info(f'Email "{subject}" sent to {to}')
        return True

    def send_password_reset_email(self, user, token):
        """Sends a password reset email to the user with a reset link"""
        reset_url = self.reset_url(token)
        if not self.is_configured and not self.suppress_send:
            current_app.logger.info(f'Email not configured. Reset link for {user.email}: {reset_url}')

        text = f"""Hello,

You requested to reset your password for your Coffee Diary account.

Please click the link below to reset your password. This link will expire in 5 minutes:

{reset_url}

If you did not request a password reset, please ignore this email.

Thanks,
The Coffee Diary Team"""

        html = f"""<p>Hello,</p>
<p>You requested to reset your password for your Coffee Diary account.</p>
<p>Please click the link below to reset your password. This link will expire in 5 minutes:</p>
<p><a href="{reset_url}" style="padding: 10px 15px; background: #3B82F6; color: white; text-decoration: none; border-radius: 5px;">Reset Password</a></p>
<p>If you did not request a password reset, please ignore this email.</p>
<p>Thanks,<br>The Coffee Diary Team</p>"""

        return self.send_message(user.email, 'Reset Your Coffee Diary Password', text, html)

    def send_email_confirmation(self, user, token):
        """Sends the confirm-your-email message sent after signup or on resend"""
        confirm_url = self.confirmation_url(token)
        if not self.is_configured and not self.suppress_send:
            current_app.logger.info(f'Email not configured. Confirmation link for {user.email}: {confirm_url}')

        greeting = f'Hello {user.name},' if user.name else 'Hello,'

        text = f"""{greeting}

Welcome to Coffee Diary! Please confirm your email address by clicking the link below. This link will expire in 24 hours:

{confirm_url}

If you did not create an account, please ignore this email.

Thanks,
The Coffee Diary Team"""

        html = f"""<p>{greeting}</p>
<p>Welcome to Coffee Diary! Please confirm your email address by clicking the link below. This link will expire in 24 hours:</p>
<p><a href="{confirm_url}" style="padding: 10px 15px; background: #3B82F6; color: white; text-decoration: none; border-radius: 5px;">Confirm Email</a></p>
<p>If you did not create an account, please ignore this email.</p>
<p>Thanks,<br>The Coffee Diary Team</p>"""

        return self.send_message(user.email, 'Confirm Your Coffee Diary Email', text, html)


def get_email_sender():
    return current_app.extensions['email_sender']
