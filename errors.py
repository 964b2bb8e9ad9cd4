from flask import jsonify
from werkzeug.exceptions import HTTPException


class ParkingError(Exception):
    """Base error, carries the status code and the message shown to clients"""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(ParkingError):
    status_code = 400


class NotFoundError(ParkingError):
    status_code = 404


class ConflictError(ParkingError):
    # Existing clients expect 400 for an occupied spot
    status_code = 400


class StoreError(ParkingError):
    status_code = 500


def handle_parking_error(error):
    return jsonify({'error': error.message}), error.status_code


def handle_http_error(error):
    return jsonify({'error': error.name}), error.code


def register_error_handlers(app):
    app.register_error_handler(ParkingError, handle_parking_error)
    app.register_error_handler(HTTPException, handle_http_error)
