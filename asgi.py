"""
asgi.py -- Application assembly for AssetGate.

This is the ONLY module that builds the app from the process environment.
Everything else receives a Settings instance, which keeps tests free of
global state.

Run with:  uvicorn asgi:app
           python main.py serve
"""

from api.main import create_app

app = create_app()
