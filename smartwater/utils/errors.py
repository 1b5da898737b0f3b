"""App-level error handlers: every error leaves the API as {'error': ...} JSON"""
from flask import jsonify, current_app
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from smartwater.schemas.base import validation_details


def register_error_handlers(app):
    from smartwater import db

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({'error': 'Invalid request data', 'details': validation_details(e)}), 400

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        limit_mb = (current_app.config.get('MAX_CONTENT_LENGTH') or 0) // (1024 * 1024)
        return jsonify({'error': f'File too large. Maximum size is {limit_mb}MB.'}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        current_app.logger.exception(f"Unhandled error: {e}")
        return jsonify({'error': 'Internal server error'}), 500
