"""
Mock Email Service
==================

Keeps messages in memory instead of sending them.
"""

import logging
from typing import List, Optional

from .interface import EmailMessage, EmailServiceInterface

logger = logging.getLogger(__name__)


class MockEmailService(EmailServiceInterface):
    """Mock email service for tests and local development."""

    def __init__(self):
        self.sent_messages: List[EmailMessage] = []

    def send(self, message: EmailMessage) -> bool:
        logger.info(f"[MOCK EMAIL] To: {message.to}, Subject: {message.subject}")
        self.sent_messages.append(message)
        return True

    def send_bulk(self, messages: List[EmailMessage]) -> int:
        for message in messages:
            self.send(message)
        return len(messages)

    def get_last_message(self) -> Optional[EmailMessage]:
        return self.sent_messages[-1] if self.sent_messages else None

    def messages_for_template(self, template: str) -> List[EmailMessage]:
        return [m for m in self.sent_messages if m.template == template]

    def clear(self):
        self.sent_messages = []
