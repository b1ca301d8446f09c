"""
Shared fixtures.

Filesystem tests use real files in tmp_path. The SMTP relay is the only
thing faked: smtplib.SMTP is swapped for a recorder.
"""

import smtplib
from email import message_from_bytes, policy

import pytest

from config import RelayConfig


class FakeSMTP:
    """Stand-in for smtplib.SMTP that keeps every delivered message."""

    outbox = []
    fail_after = None   # number of successful deliveries before DATA fails
    refuse_login = False
    instances = []
    implicit_tls = False

    def __init__(self, host, port, timeout=None, context=None):
        self.host = host
        self.port = port
        self.logged_in = None
        self.tls = False
        self.closed = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def close(self):
        self.closed = True

    def ehlo(self):
        return 250, b"fake"

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self, context=None):
        self.tls = True

    def login(self, user, password):
        if FakeSMTP.refuse_login:
            raise smtplib.SMTPAuthenticationError(535, b"5.7.8 Username and Password not accepted")
        self.logged_in = (user, password)

    def mail(self, sender):
        self.sender = sender
        return 250, b"2.1.0 OK"

    def rcpt(self, rcpt):
        self.rcpt_to = rcpt
        return 250, b"2.1.5 OK"

    def data(self, data):
        if FakeSMTP.fail_after is not None and len(FakeSMTP.outbox) >= FakeSMTP.fail_after:
            raise smtplib.SMTPServerDisconnected("Connection unexpectedly closed")
        FakeSMTP.outbox.append(message_from_bytes(data, policy=policy.default))
        return 250, b"2.0.0 OK queued"


class FakeSMTPSSL(FakeSMTP):
    implicit_tls = True


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.outbox = []
    FakeSMTP.instances = []
    FakeSMTP.fail_after = None
    FakeSMTP.refuse_login = False
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTPSSL)
    return FakeSMTP


@pytest.fixture
def relay():
    return RelayConfig(
        host="smtp.example.com",
        port=587,
        user="reader@example.com",
        password="secret",
        sender="reader@example.com",
    )


@pytest.fixture
def tmp_library(tmp_path):
    """A library root laid out like the NAS share."""
    root = tmp_path / "Books"
    (root / "Jane Austen").mkdir(parents=True)
    (root / "unsorted").mkdir()
    (root / "Jane Austen" / "Jane Austen - Pride and Prejudice.epub").write_bytes(b"PK epub")
    (root / "Jane Austen" / "Jane Austen - Pride and Prejudice.mobi").write_bytes(b"mobi")
    (root / "unsorted" / "some.book.title.epub").write_bytes(b"PK epub")
    (root / "notes.txt").write_text("not a book")
    return root
