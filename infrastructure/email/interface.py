"""
Email Service Interface
========================

Abstract base class for transactional email. Templates live under
``templates/emails/<name>.html`` and ``templates/emails/<name>.txt`` and are
rendered with Django's template engine.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.template.loader import render_to_string


@dataclass
class EmailMessage:
    """
    Represents an email message.

    Attributes:
        subject: Email subject line
        body: Plain text body
        to: Recipient addresses
        from_email: Sender address (uses DEFAULT_FROM_EMAIL if None)
        html_body: HTML alternative of the body
        template: Name of the template the message was rendered from
    """

    subject: str
    body: str
    to: List[str]
    from_email: Optional[str] = None
    html_body: Optional[str] = None
    template: Optional[str] = None
    reply_to: List[str] = field(default_factory=list)


class EmailServiceInterface(ABC):
    """
    Abstract interface for email operations.

    Concrete implementations:
        - SMTPEmailService: Django email backend (SMTP, SES, ...)
        - MockEmailService: keeps messages in memory for tests
    """

    @abstractmethod
    def send(self, message: EmailMessage) -> bool:
        """
        Send a single email message.

        Raises:
            EmailException: If sending fails
        """

    @abstractmethod
    def send_bulk(self, messages: List[EmailMessage]) -> int:
        """Send several messages, returning how many were delivered."""

    def build_template_message(
        self, template: str, context: Dict[str, Any], to: List[str], subject: str
    ) -> EmailMessage:
        return EmailMessage(
            subject=subject,
            body=render_to_string(f"emails/{template}.txt", context),
            html_body=render_to_string(f"emails/{template}.html", context),
            to=to,
            template=template,
        )

    def send_template(self, template: str, context: Dict[str, Any], to: List[str], subject: str) -> bool:
        """
        Render ``emails/<template>`` (HTML and text) and send it.

        Raises:
            EmailException: If sending fails
        """
        return self.send(self.build_template_message(template, context, to, subject))


class EmailException(Exception):
    """Base exception for email operations."""
