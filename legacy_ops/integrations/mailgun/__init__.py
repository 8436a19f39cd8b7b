# Mailgun integration module
from legacy_ops.integrations.mailgun.client import MailgunClient

__all__ = ["MailgunClient"]
