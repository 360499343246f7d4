# walksense/errors.py
from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException
from walksense.logging_config import setup_logging

logger = setup_logging()


class WalkSenseError(Exception):
    status_code = 500
    message = 'An error occurred.'

    def __init__(self, message=None, errors=None, detail=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors
        self.detail = detail

    def to_dict(self):
        payload = {'success': False, 'message': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationFailed(WalkSenseError):
    status_code = 422
    message = 'Validation failed'


class Unauthenticated(WalkSenseError):
    status_code = 401
    message = 'Unauthenticated.'


class InvalidCredentials(Unauthenticated):
    message = 'Invalid credentials'


class Unauthorized(WalkSenseError):
    status_code = 403
    message = 'Unauthorized access to this PWD location'


class RoleNotAllowed(Unauthorized):
    message = 'Invalid user role'


class NotFound(WalkSenseError):
    status_code = 404
    message = 'Not found.'


class NoLinkedPwd(NotFound):
    message = 'No PWD account found for this guardian'


class DuplicateEmail(WalkSenseError):
    status_code = 409
    message = 'The email has already been taken.'


class AlreadyVerified(WalkSenseError):
    status_code = 409
    message = 'This account has already been verified. Please log in.'


class Mismatch(WalkSenseError):
    status_code = 400
    message = 'Invalid verification code.'


class Expired(WalkSenseError):
    status_code = 400
    message = 'Verification code has expired. Please request a new one.'


class PersistenceFailure(WalkSenseError):
    status_code = 500
    message = 'An error occurred while saving your data.'


def register_error_handlers(app):
    @app.errorhandler(WalkSenseError)
    def handle_walksense_error(error):
        payload = error.to_dict()
        if error.status_code >= 500:
            payload['error'] = error.detail if current_app.debug and error.detail else 'An error occurred'
        return jsonify(payload), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({'success': False, 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error: {error}")
        payload = {'success': False, 'message': 'An unexpected error occurred.'}
        payload['error'] = str(error) if current_app.debug else 'An error occurred'
        return jsonify(payload), 500
