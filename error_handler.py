"""
Error handling and logging setup for the School Journal API.
Every error leaves the app as a JSON body of the form {"message": ...}.
"""

import logging
import logging.handlers
import os
import sys
import traceback

from flask import jsonify, request
from flask_wtf.csrf import CSRFError
from werkzeug.exceptions import HTTPException

from extensions import db

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'

logger = logging.getLogger(__name__)


def configure_logging(app):
    """Console logging at LOG_LEVEL plus a rotating file when LOG_FILE is set."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers = []
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    log_file = app.config.get('LOG_FILE')
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8')
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    app.logger.setLevel(level)


def get_client_ip():
    """Client address, honouring a reverse proxy's X-Forwarded-For."""
    return request.environ.get('HTTP_X_FORWARDED_FOR', request.remote_addr)


def register_error_handlers(app):
    """Turn HTTP errors and unexpected exceptions into JSON responses."""

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        if error.code == 401:
            message = 'Unauthorized'
        elif error.code == 403 and error.description == error.__class__.description:
            message = 'Forbidden - Insufficient permissions'
        else:
            message = error.description
        return jsonify({'message': message}), error.code

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        logger.warning(f"CSRF error on {request.path}: {error.description}")
        return jsonify({'message': 'CSRF token missing or invalid'}), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.error(f"Unhandled error on {request.method} {request.path}: {error}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'message': 'Internal server error'}), 500
