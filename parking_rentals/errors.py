"""
Gestori di errore HTTP.

Le eccezioni di dominio vengono tradotte nella busta JSON usata dalle API:
{"success": false, "message": "...", "payload": null}
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from parking_rentals.services.exceptions import (
    NotFoundError,
    StoreFailure,
    ValidationError,
)

logger = logging.getLogger(__name__)


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message, "payload": None}), status


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def validation_error(e):
        return error_response(str(e), 400)

    @app.errorhandler(NotFoundError)
    def not_found_error(e):
        return error_response(str(e), 404)

    @app.errorhandler(StoreFailure)
    def store_failure(e):
        logger.error("Errore database: %s", e)
        return error_response("Errore del database, operazione annullata.", 503)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("Risorsa non trovata.", 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("Metodo non consentito.", 405)

    @app.errorhandler(HTTPException)
    def http_error(e):
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(500)
    def server_error(e):
        logger.exception("Errore interno non gestito")
        return error_response("Errore interno del server.", 500)
