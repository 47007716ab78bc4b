"""Application factory for the waitlist auth app."""

from http import HTTPStatus
from typing import Any, Mapping, Optional
import logging

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

from . import routes
from .app_logging import setup_logger
from .exceptions import IdentityError, Unavailable
from .identity import IdentityService
from .services import datastore

logger = logging.getLogger(__name__)


def _error_response(error: BaseException, status: int,
                    reason: Optional[str] = None) -> Response:
    response: Response = jsonify(error=type(error).__name__,
                                 reason=reason or str(error))
    response.status_code = status
    return response


def jsonify_exception(error: HTTPException) -> Response:
    """Render a werkzeug HTTP exception as JSON."""
    return _error_response(error, error.code or HTTPStatus.BAD_REQUEST,
                           error.description)


def jsonify_identity_error(error: IdentityError) -> Response:
    """Render a business outcome as JSON with its own status."""
    logger.debug('%s: %s', type(error).__name__, error)
    return _error_response(error, error.status_code)


def jsonify_unavailable(error: Unavailable) -> Response:
    return _error_response(error, HTTPStatus.SERVICE_UNAVAILABLE)


def jsonify_bad_request(error: ValueError) -> Response:
    return _error_response(error, HTTPStatus.BAD_REQUEST)


def jsonify_unhandled(error: Exception) -> Response:
    logger.exception('Unhandled exception: %s', error)
    return _error_response(error, HTTPStatus.INTERNAL_SERVER_ERROR,
                           'Internal server error')


def create_web_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """Initialize and configure the waitlist auth application."""
    app = Flask('waitlist_auth')
    app.config.from_pyfile('config.py')
    if config:
        app.config.update(config)

    level = app.config.get('LOGLEVEL', logging.INFO)
    if isinstance(level, str) and level.isdigit():
        level = int(level)
    setup_logger(level)

    datastore.init_app(app)
    app.extensions['identity'] = IdentityService.from_config(app.config)

    app.register_blueprint(routes.blueprint)
    app.errorhandler(HTTPException)(jsonify_exception)
    app.errorhandler(IdentityError)(jsonify_identity_error)
    app.errorhandler(Unavailable)(jsonify_unavailable)
    app.errorhandler(ValueError)(jsonify_bad_request)
    app.errorhandler(Exception)(jsonify_unhandled)

    if app.config['CREATE_DB']:
        with app.app_context():
            datastore.create_all()

    return app
