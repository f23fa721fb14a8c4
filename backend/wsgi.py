# backend/wsgi.py
from givemarket import create_app

app = create_app()
