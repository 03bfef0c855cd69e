"""
Avvio rapido dell'app Flask con un singolo comando:

    python run_app.py

Usa la factory create_app() e la configurazione di sviluppo di default.
Al primo avvio crea le tabelle mancanti (utile con il file SQLite locale).
"""

from __future__ import annotations

import os

from parking_rentals import create_app
from parking_rentals.extensions import db
from config import DevConfig


def main() -> None:
    app = create_app(DevConfig)
    with app.app_context():
        import parking_rentals.models  # noqa: F401
        db.create_all()

    host = os.environ.get("FLASK_RUN_HOST", "127.0.0.1")
    port = int(os.environ.get("FLASK_RUN_PORT", "5000"))

    app.logger.info("Avvio dell'applicazione tramite run_app.py", extra={"component": "launcher"})
    app.run(host=host, port=port, debug=app.config.get("DEBUG", False))


if __name__ == "__main__":
    main()
