"""
Pacchetto principale dell'applicazione Flask (noleggio posti auto).
"""

from flask import Flask, jsonify
from config import DevConfig
from .extensions import init_extensions

def create_app(config_class=DevConfig) -> Flask:
    app = Flask(
        __name__,
        instance_relative_config=True,
    )
    app.config.from_object(config_class)
    init_extensions(app)

    from .errors import register_error_handlers
    register_error_handlers(app)

    _register_blueprints(app)

    app.logger.info("Applicazione Flask inizializzata.")

    @app.route("/health")
    def healthcheck():
        return jsonify({"status": "ok"}), 200

    return app


def _register_blueprints(app: Flask) -> None:
    # Export CSV
    from .web.routes_export import export_bp

    app.register_blueprint(export_bp, url_prefix="/export")

    # API
    from .api import api_contracts_bp, api_payments_bp, api_reports_bp

    app.register_blueprint(api_contracts_bp, url_prefix="/api/contracts")
    app.register_blueprint(api_payments_bp, url_prefix="/api/payments")
    app.register_blueprint(api_reports_bp, url_prefix="/api/reports")
