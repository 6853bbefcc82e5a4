"""
Tests for outbound mail.
"""

import os
import pytest
from unittest.mock import patch

from utils.mailer import BODY_PLACEHOLDER, MailData, Mailer

TEMPLATE_FOLDER = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'templates', 'email')


@pytest.fixture
def mail():
    return MailData(
        to='john@example.com',
        from_addr='bookings@laptop-rental.com',
        subject='Reservation Confirmation',
        content='<strong>Reservation Confirmation</strong>',
    )


class TestDeliver:
    """Tests for synchronous delivery through Resend."""

    @patch('utils.mailer.resend.Emails.send')
    def test_sends_rendered_template(self, mock_send, mail):
        """The content is placed in the email template."""
        mailer = Mailer(api_key='test_api_key', template_folder=TEMPLATE_FOLDER)

        assert mailer.deliver(mail) is True

        mock_send.assert_called_once()
        params = mock_send.call_args[0][0]
        assert params['to'] == 'john@example.com'
        assert params['from'] == 'bookings@laptop-rental.com'
        assert params['subject'] == 'Reservation Confirmation'
        assert '<strong>Reservation Confirmation</strong>' in params['html']
        assert BODY_PLACEHOLDER not in params['html']

    @patch('utils.mailer.resend.Emails.send')
    def test_no_api_key(self, mock_send, mail):
        """Without an API key nothing is sent."""
        mailer = Mailer(api_key=None, template_folder=TEMPLATE_FOLDER)

        assert mailer.deliver(mail) is False
        mock_send.assert_not_called()

    @patch('utils.mailer.resend.Emails.send')
    def test_api_failure_is_logged(self, mock_send, mail, caplog):
        """Resend errors are logged, not raised."""
        mock_send.side_effect = Exception('API Error')
        mailer = Mailer(api_key='test_api_key', template_folder=TEMPLATE_FOLDER)

        assert mailer.deliver(mail) is False
        assert 'Failed to send email to john@example.com' in caplog.text

    @patch('utils.mailer.resend.Emails.send')
    def test_missing_template_sends_raw_content(self, mock_send, mail):
        """An unknown template falls back to the bare content."""
        mail.template = 'missing.email.html'
        mailer = Mailer(api_key='test_api_key', template_folder=TEMPLATE_FOLDER)

        mailer.deliver(mail)

        assert mock_send.call_args[0][0]['html'] == mail.content


class TestQueue:
    """Tests for the background worker."""

    @patch('utils.mailer.resend.Emails.send')
    def test_worker_delivers_queued_mail(self, mock_send, mail):
        """Messages queued with send() are delivered by the worker."""
        mailer = Mailer(api_key='test_api_key', template_folder=TEMPLATE_FOLDER)
        mailer.start()

        mailer.send(mail)
        mailer.stop()

        mock_send.assert_called_once()

    @patch('utils.mailer.resend.Emails.send')
    def test_disabled_mailer_sends_nothing(self, mock_send, mail):
        """A disabled mailer only logs."""
        mailer = Mailer(api_key='test_api_key', enabled=False)
        mailer.start()

        mailer.send(mail)
        mailer.stop()

        mock_send.assert_not_called()
