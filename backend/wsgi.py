# backend/wsgi.py
from qrmenu import create_app

app = create_app()
