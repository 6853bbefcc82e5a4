"""
Outbound mail.

The booking engine enqueues MailData records and never waits for delivery.
A background worker renders the named email template and sends through
Resend. Missing API keys and delivery failures are logged, not raised.
"""

import logging
import os
import queue
import threading
from dataclasses import dataclass

import resend

logger = logging.getLogger(__name__)

BODY_PLACEHOLDER = '[%body%]'


@dataclass
class MailData:
    """One outbound message."""

    to: str
    from_addr: str
    subject: str
    content: str
    template: str = 'basic.email.html'


class Mailer:
    """
    Queue-backed mail sender.

    Args:
        api_key: Resend API key; when empty messages are logged and skipped
        template_folder: Directory holding the email templates
        enabled: When False the worker is never started and send() only logs
    """

    def __init__(self, api_key: str = None, template_folder: str = None, enabled: bool = True):
        self.api_key = api_key
        self.template_folder = template_folder
        self.enabled = enabled
        self._queue = queue.Queue()
        self._worker = None

    def start(self) -> None:
        """Start the delivery worker thread (idempotent)."""
        if not self.enabled or (self._worker and self._worker.is_alive()):
            return
        self._worker = threading.Thread(target=self._listen, name='mail-worker', daemon=True)
        self._worker.start()
        logger.info('Mail listener started')

    def stop(self, timeout: float = 5.0) -> None:
        """Drain the queue and stop the worker."""
        if self._worker and self._worker.is_alive():
            self._queue.put(None)
            self._worker.join(timeout)
        self._worker = None

    def send(self, mail: MailData) -> None:
        """Enqueue a message for background delivery."""
        if not self.enabled:
            logger.info('Mail disabled, not sending "%s" to %s', mail.subject, mail.to)
            return
        self._queue.put(mail)
        logger.debug('Queued mail "%s" to %s', mail.subject, mail.to)

    def _listen(self) -> None:
        while True:
            mail = self._queue.get()
            try:
                if mail is None:
                    return
                self.deliver(mail)
            finally:
                self._queue.task_done()

    def render(self, mail: MailData) -> str:
        """Place the message content into its email template."""
        if not mail.template or not self.template_folder:
            return mail.content

        path = os.path.join(self.template_folder, mail.template)
        try:
            with open(path, encoding='utf-8') as f:
                template = f.read()
        except OSError:
            logger.warning('Email template %s not found, sending raw content', path)
            return mail.content

        return template.replace(BODY_PLACEHOLDER, mail.content)

    def deliver(self, mail: MailData) -> bool:
        """
        Send one message synchronously.

        Returns:
            bool: True if Resend accepted the message
        """
        if not self.api_key:
            logger.warning('Skipping email to %s: RESEND_API_KEY not set.', mail.to)
            return False

        resend.api_key = self.api_key
        try:
            resend.Emails.send({
                'from': mail.from_addr,
                'to': mail.to,
                'subject': mail.subject,
                'html': self.render(mail),
            })
        except Exception as e:
            logger.error('Failed to send email to %s: %s', mail.to, e, exc_info=True)
            return False

        logger.info('Sent email "%s" to %s', mail.subject, mail.to)
        return True
