# backend/wsgi.py
from waro import create_app

app = create_app()
