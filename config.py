# config.py
from dotenv import load_dotenv
import os
from dataclasses import dataclass

load_dotenv()

# ── fixed library location (not configurable) ─────────────────────────────────
LIBRARY_ROOT = "/mnt/nas/media/Books"

# second attempt when a plain delete is refused; run as argv, never via a shell
PRIVILEGED_DELETE_COMMAND = ["sudo", "-n", "rm", "-f", "--"]
DELETE_TIMEOUT = int(os.getenv("DELETE_TIMEOUT", "30"))

# ── web server ────────────────────────────────────────────────────────────────
HOST      = os.getenv("HOST", "0.0.0.0")
PORT      = int(os.getenv("PORT", "5678"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Amazon only converts attachments when the subject says so
CONVERT_SUBJECT = "Convert"


@dataclass(frozen=True)
class RelayConfig:
    """SMTP relay settings, built once at startup and handed to the dispatcher."""

    host: str = "smtp.gmail.com"
    port: int = 587
    user: str = ""
    password: str = ""
    sender: str = ""
    timeout: float = 60

    @classmethod
    def from_env(cls, environ=None):
        env  = os.environ if environ is None else environ
        user = env.get("SMTP_USER", "")
        return cls(
            host=env.get("SMTP_HOST") or "smtp.gmail.com",
            port=int(env.get("SMTP_PORT") or "587"),
            user=user,
            password=env.get("SMTP_PASS", ""),
            sender=env.get("SMTP_SENDER") or user,
            timeout=float(env.get("SMTP_TIMEOUT") or "60"),
        )

    def details(self):
        """Connection info safe to show back to the caller (no password)."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "sender": self.sender,
        }
