"""OpenFlow settings with local-dev-first defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class Settings:
    env: str = field(default_factory=lambda: os.getenv("OPENFLOW_ENV", "dev"))
    host: str = field(default_factory=lambda: os.getenv("OPENFLOW_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("OPENFLOW_PORT", "8000")))

    database_url: str = field(
        default_factory=lambda: os.getenv(
            "OPENFLOW_DATABASE_URL", "sqlite+aiosqlite:///./openflow_dev.db"
        )
    )
    sql_echo: bool = field(default_factory=lambda: _env_bool("OPENFLOW_SQL_ECHO", "false"))

    log_level: str = field(default_factory=lambda: os.getenv("OPENFLOW_LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: _env_bool("OPENFLOW_LOG_JSON", "false"))

    # Outbound email. Disabled means sends are logged only.
    mail_enabled: bool = field(default_factory=lambda: _env_bool("OPENFLOW_MAIL_ENABLED", "false"))
    mail_from: str = field(
        default_factory=lambda: os.getenv("OPENFLOW_MAIL_FROM", "noreply@openflow.world")
    )
    smtp_host: str = field(default_factory=lambda: os.getenv("OPENFLOW_SMTP_HOST", ""))
    smtp_port: int = field(default_factory=lambda: int(os.getenv("OPENFLOW_SMTP_PORT", "587")))
    smtp_username: str = field(default_factory=lambda: os.getenv("OPENFLOW_SMTP_USERNAME", ""))
    smtp_password: str = field(default_factory=lambda: os.getenv("OPENFLOW_SMTP_PASSWORD", ""))
    smtp_starttls: bool = field(default_factory=lambda: _env_bool("OPENFLOW_SMTP_STARTTLS", "true"))
    smtp_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("OPENFLOW_SMTP_TIMEOUT_SECONDS", "15"))
    )

    app_base_url: str = field(
        default_factory=lambda: os.getenv("OPENFLOW_APP_BASE_URL", "https://app.openflow.world")
    )

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.mail_from)
