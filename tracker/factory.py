"""Application factory for the tracker API."""

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException, Forbidden, Unauthorized, \
    BadRequest, Conflict, MethodNotAllowed, InternalServerError, NotFound, \
    ServiceUnavailable, UnsupportedMediaType

from . import auth, bootstrap, routes
from .app_logging import setup_logger
from .services import datastore


def create_web_app() -> Flask:
    """Initialize and configure the tracker application."""
    app = Flask('tracker')
    app.config.from_pyfile('config.py')
    setup_logger(int(app.config['LOGLEVEL']),
                 json=bool(app.config['LOG_JSON']))

    datastore.init_app(app)
    auth.Auth(app)      # Resolves the caller identity on each request.
    bootstrap.init_app(app)
    app.register_blueprint(routes.blueprint)

    with app.app_context():
        if app.config['CREATE_DB']:
            datastore.create_all()
        if app.config.get('ADMIN_USERNAME'):
            bootstrap.bootstrap_admin(app.config['ADMIN_USERNAME'],
                                      app.config.get('ADMIN_PASSWORD'))

    register_error_handlers(app)
    return app


def register_error_handlers(app: Flask) -> None:
    """Register error handlers for the Flask app."""
    app.errorhandler(Forbidden)(jsonify_exception)
    app.errorhandler(Unauthorized)(jsonify_exception)
    app.errorhandler(BadRequest)(jsonify_exception)
    app.errorhandler(NotFound)(jsonify_exception)
    app.errorhandler(Conflict)(jsonify_exception)
    app.errorhandler(MethodNotAllowed)(jsonify_exception)
    app.errorhandler(UnsupportedMediaType)(jsonify_exception)
    app.errorhandler(ServiceUnavailable)(jsonify_exception)
    app.errorhandler(InternalServerError)(handle_unexpected)


def jsonify_exception(error: HTTPException) -> Response:
    """Render exceptions as JSON."""
    exc_resp = error.get_response()
    body = {'success': False, 'reason': error.description}
    errors = getattr(error, 'errors', None)
    if errors:
        body['errors'] = errors
    response: Response = jsonify(body)
    response.status_code = exc_resp.status_code
    return response


def handle_unexpected(error: InternalServerError) -> Response:
    """Render unhandled exceptions without leaking their details."""
    if getattr(error, 'original_exception', None) is not None:
        error = InternalServerError('Unexpected error occurred')
    return jsonify_exception(error)
