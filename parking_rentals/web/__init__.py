"""
Pacchetto per le route non-JSON dell'applicazione.

Contiene:
- export_bp -> export CSV di contratti e pagamenti
"""
