#!/usr/bin/env python3
"""
Comandi di gestione dell'applicazione noleggio posti auto.

Uso:
    python manage.py runserver                      # server di sviluppo
    python manage.py create-db                      # crea le tabelle
    python manage.py recalculate-all [--today D]    # ricalcola debito e mesi pagati
"""

import argparse
import logging
import os
from datetime import date, datetime

from sqlalchemy.exc import OperationalError as SAOperationalError
from pymysql.err import OperationalError as MySQLOperationalError

from parking_rentals import create_app
from parking_rentals.extensions import db
from parking_rentals.services.exceptions import StoreFailure
from config import DevConfig

# Logger CLI (fuori dal contesto Flask)
cli_logger = logging.getLogger("manage_cli")
cli_logger.setLevel(logging.INFO)

if not cli_logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    cli_logger.addHandler(_handler)


def create_db(app, args) -> int:
    """Crea le tabelle dei modelli (contratti e pagamenti)."""
    import parking_rentals.models  # noqa: F401

    with app.app_context():
        cli_logger.info("Creazione tabelle su %s", app.config.get("SQLALCHEMY_DATABASE_URI"))
        try:
            db.create_all()
        except (SAOperationalError, MySQLOperationalError) as e:
            cli_logger.error("Database non raggiungibile o permessi insufficienti: %s", e)
            return 1
    cli_logger.info("Database creato con successo.")
    return 0


def recalculate_all(app, args) -> int:
    """Riallinea tutti i contratti (i contratti aperti maturano un mese in più a inizio mese)."""
    from parking_rentals.services import reconciliation_service

    with app.app_context():
        try:
            changed = reconciliation_service.recalculate_all(today=args.today)
        except StoreFailure as e:
            cli_logger.error("Ricalcolo annullato: %s", e)
            return 1
    cli_logger.info("Ricalcolo completato: %s contratti aggiornati.", changed)
    return 0


def run_server(app, args) -> int:
    """Avvia il server di sviluppo Flask."""
    host = os.environ.get("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.environ.get("FLASK_RUN_PORT", "5000"))

    app.logger.info("Avvio del server su http://%s:%s", host, port)
    app.run(host=host, port=port, debug=app.config.get("DEBUG", False))
    return 0


def _iso_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"data non valida (atteso YYYY-MM-DD): {value}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Gestione dell'applicazione noleggio posti auto.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("runserver", help="Avvia il server di sviluppo.").set_defaults(handler=run_server)
    commands.add_parser("create-db", help="Crea le tabelle del database.").set_defaults(handler=create_db)

    recalc = commands.add_parser("recalculate-all", help="Ricalcola tutti i contratti.")
    recalc.add_argument("--today", type=_iso_date, default=None, help="Data di riferimento (YYYY-MM-DD).")
    recalc.set_defaults(handler=recalculate_all)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    app = create_app(DevConfig)
    return args.handler(app, args)


if __name__ == "__main__":
    raise SystemExit(main())
