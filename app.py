# app.py
from dotenv import load_dotenv

load_dotenv()

import logging
from datetime import datetime, timezone

from flask import Flask, jsonify, request

import config
from email_sender import MailDispatcher
from errors import DispatchError
from library import scan_library
from models import BookRequest
from remover import delete_book, delete_books

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("werkzeug").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error(e, status=500, **extra):
    return jsonify(error=str(e), **extra), status


def _allow_cors(resp):
    # the frontend is served from a different origin
    resp.headers["Access-Control-Allow-Origin"]  = "*"
    resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    resp.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return resp


# ── Flask setup ────────────────────────────────────────────────────────────────
def create_app(relay=None, library_root=None):
    app = Flask(__name__)
    app.after_request(_allow_cors)

    relay      = relay or config.RelayConfig.from_env()
    dispatcher = MailDispatcher(relay)
    root       = library_root or config.LIBRARY_ROOT

    # ── Routes ────────────────────────────────────────────────────────────────
    @app.route("/api/sync-library", methods=["POST"])
    def sync_library():
        try:
            books = scan_library(root)
        except Exception as e:
            logger.exception("Sync error")
            return _error(e)
        logger.info("Returning %d books", len(books))
        return jsonify([b.to_dict() for b in books])

    @app.route("/api/delete-book", methods=["POST"])
    def delete_one():
        try:
            filepath = request.get_json()["filepath"]
            logger.info("Deleting: %s", filepath)
            delete_book(filepath)
        except Exception as e:
            logger.exception("Delete error")
            return _error(e)
        return jsonify(status="success", message="Book deleted successfully")

    @app.route("/api/delete-books", methods=["POST"])
    def delete_many():
        try:
            result = delete_books(request.get_json()["filepaths"])
        except Exception as e:
            logger.exception("Bulk delete error")
            return _error(e)
        return jsonify(
            status="success",
            message=f"Deleted {result.deleted} books",
            deleted=result.deleted,
            failed=result.failed,
        )

    @app.route("/api/send-books", methods=["POST"])
    def send_books():
        try:
            body   = request.get_json()
            email  = body["email"]
            books  = [BookRequest.from_dict(b) for b in body["books"]]
            result = dispatcher.send_books(books, email)
        except Exception as e:
            logger.exception("Send error")
            return _error(e)
        return jsonify(
            status="success",
            message=f"Sent {result.requested} books to {email}",
            sent=result.sent,
            skipped=result.skipped,
        )

    @app.route("/api/test-email", methods=["POST"])
    def test_email():
        try:
            email  = request.get_json()["email"]
            result = dispatcher.send_test_email(email)
        except DispatchError as e:
            return _error(e, details=e.details)
        except Exception as e:
            logger.exception("Test email error")
            return _error(e, details=relay.details())
        return jsonify(
            status="success",
            message=f"Test email sent to {email}",
            messageId=result.message_id,
            response=result.response,
            **{"from": result.sender},
        )

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify(status="OK", timestamp=_now())

    return app


app = create_app()

# ── Local run helper (ignored by Gunicorn) ────────────────────────────────────
if __name__ == "__main__":
    logger.info("Kindle API server running on port %d", config.PORT)
    app.run(host=config.HOST, port=config.PORT)
