"""
Pacchetto per i servizi (logica di business) dell'applicazione.

I servizi orchestrano:
- repository (accesso al DB) tramite Unit of Work
- codec dei mesi coperti e calcolo dei periodi
- riconciliazione contratto/pagamenti
- logging strutturato

I moduli si importano singolarmente (es. ``from parking_rentals.services
import payment_service``): i tipi in ``services.dto`` sono usati anche dai
parser, quindi questo pacchetto non importa nulla in modo anticipato.
"""
