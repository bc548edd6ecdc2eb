from flask import current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError
import logging

from models import storage
from utils.errors import AppError
from .responses import envelope


def register_error_handlers(app):
    # Typed errors carried out of the core by unwrap()
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logging.error("Internal failure: %s %s", err.message, err.details or "")
            return envelope(err.status_code, "An unexpected error occurred")
        data = {"errors": err.details} if err.details else None
        return envelope(err.status_code, err.message, data)

    # Marshmallow validation errors map to 400
    @app.errorhandler(SchemaValidationError)
    def handle_validation_error(err: SchemaValidationError):
        # err.messages contains field-level details
        return envelope(400, "Invalid input", {"errors": err.messages})

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        storage.rollback()
        lower_msg = str(getattr(err, "orig", err)).lower()
        if current_app and current_app.debug:
            logging.exception("Integrity error", exc_info=err)
        if "unique" in lower_msg or "duplicate" in lower_msg:
            return envelope(409, "Unique constraint violated.")
        if "foreign key" in lower_msg:
            return envelope(400, "Foreign key constraint failed.")
        return envelope(400, "Integrity error.")

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return envelope(err.code or 400, err.description or err.name)

    # 500 Internal Error (catch-all); details stay in the log
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        return envelope(500, "An unexpected error occurred")
