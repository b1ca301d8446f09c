# email_sender.py
import logging
import mimetypes
import os
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import make_msgid

import config
from errors import DispatchError
from models import BookRequest, DiagnosticResult, DispatchResult

logger = logging.getLogger(__name__)

TEST_SUBJECT = "Kindle Converter - Test Email"
TEST_TEXT = (
    "This is a test email from your Kindle Converter. If you receive this, "
    "email is working correctly!\n\n"
    "Note: When sending books to Kindle, make sure this sender email is in "
    "your Amazon approved email list."
)
TEST_HTML = (
    "<p>This is a test email from your Kindle Converter.</p>"
    "<p>If you receive this, email is working correctly!</p>"
    "<p><strong>Important:</strong> When sending books to Kindle, make sure "
    "this sender email is in your Amazon approved email list.</p>"
)


def build_book_message(book: BookRequest, sender, to):
    msg = EmailMessage()
    msg["From"]    = sender
    msg["To"]      = to
    msg["Subject"] = config.CONVERT_SUBJECT
    msg.set_content(f"{book.title} by {book.author}")

    ctype, encoding = mimetypes.guess_type(book.filepath)
    if ctype is None or encoding is not None:
        ctype = "application/octet-stream"
    maintype, subtype = ctype.split("/", 1)
    with open(book.filepath, "rb") as f:
        msg.add_attachment(
            f.read(),
            maintype=maintype,
            subtype=subtype,
            filename=os.path.basename(book.filepath),
        )
    return msg


class MailDispatcher:
    """Sends books through one SMTP relay; one connection per message."""

    def __init__(self, relay: config.RelayConfig):
        self.relay = relay

    def _connect(self):
        r = self.relay
        if r.port == 465:
            ctx  = ssl.create_default_context()
            smtp = smtplib.SMTP_SSL(r.host, r.port, timeout=r.timeout, context=ctx)
        else:
            smtp = smtplib.SMTP(r.host, r.port, timeout=r.timeout)
        try:
            if r.port != 465:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls(context=ssl.create_default_context())
                    smtp.ehlo()
            if r.user:
                smtp.login(r.user, r.password)
        except Exception:
            # the caller's `with` never sees a half-open session
            smtp.close()
            raise
        return smtp

    def deliver(self, msg):
        """
        Hand one message to the relay.

        Talks MAIL/RCPT/DATA directly instead of send_message() so the
        relay's final reply can be passed back to the caller.
        Returns (message id, relay reply).
        """
        if "Message-ID" not in msg:
            domain = self.relay.sender.rpartition("@")[2] or None
            msg["Message-ID"] = make_msgid(domain=domain)

        sender = msg["From"]
        rcpt   = msg["To"]
        data   = msg.as_bytes(policy=msg.policy.clone(linesep="\r\n"))

        with self._connect() as smtp:
            code, reply = smtp.mail(sender)
            if code != 250:
                raise smtplib.SMTPSenderRefused(code, reply, sender)
            code, reply = smtp.rcpt(rcpt)
            if code not in (250, 251):
                raise smtplib.SMTPRecipientsRefused({rcpt: (code, reply)})
            code, reply = smtp.data(data)
            if code != 250:
                raise smtplib.SMTPDataError(code, reply)

        if isinstance(reply, bytes):
            reply = reply.decode(errors="replace")
        return msg["Message-ID"], f"{code} {reply}"

    # --------------------------------------------------------------------
    def send_books(self, books, email) -> DispatchResult:
        """
        Mail each book to `email` in order.

        Missing files are skipped. The first relay failure stops the batch
        and is raised as DispatchError; books already sent stay sent.
        """
        logger.info("Sending %d books to %s", len(books), email)
        sent, skipped = 0, []

        for book in books:
            if not os.path.exists(book.filepath):
                logger.info("File not found: %s, skipping...", book.filepath)
                skipped.append(book.filepath)
                continue

            logger.info("Attempting to send email from: %s to: %s", self.relay.sender, email)
            logger.info("Attachment: %s", book.filepath)
            try:
                msg = build_book_message(book, self.relay.sender, email)
                message_id, response = self.deliver(msg)
            except FileNotFoundError:
                # removed between the existence check and the read
                logger.info("File not found: %s, skipping...", book.filepath)
                skipped.append(book.filepath)
                continue
            except (smtplib.SMTPException, OSError) as e:
                logger.error("Failed to send %s to %s: %s", book.title, email, e)
                raise DispatchError(str(e), self.relay.details()) from e

            sent += 1
            logger.info("Email sent successfully! MessageId: %s", message_id)
            logger.info("Response: %s", response)
            logger.info("Sent: %s to %s", book.title, email)

        return DispatchResult(requested=len(books), sent=sent, skipped=skipped)

    def send_test_email(self, email) -> DiagnosticResult:
        logger.info("Testing email to: %s", email)
        logger.info(
            "SMTP Config: Host=%s, Port=%s, User=%s",
            self.relay.host, self.relay.port, self.relay.user,
        )

        msg = EmailMessage()
        msg["From"]    = self.relay.sender
        msg["To"]      = email
        msg["Subject"] = TEST_SUBJECT
        msg.set_content(TEST_TEXT)
        msg.add_alternative(TEST_HTML, subtype="html")

        try:
            message_id, response = self.deliver(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Test email error: %s", e)
            raise DispatchError(str(e), self.relay.details()) from e

        logger.info("Test email sent successfully! MessageId: %s", message_id)
        return DiagnosticResult(
            message_id=message_id,
            response=response,
            sender=self.relay.sender,
        )
