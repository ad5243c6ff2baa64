"""Outbound email for subscriber notifications."""

from .gateway import LoggingMailGateway, MailGateway, MailResult, SMTPMailGateway, build_mail_gateway

__all__ = ["LoggingMailGateway", "MailGateway", "MailResult", "SMTPMailGateway", "build_mail_gateway"]
