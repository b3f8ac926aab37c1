# backend/wsgi.py
# Entry point for `flask --app wsgi run` and WSGI servers.
from sweetshop import create_app

app = create_app()
