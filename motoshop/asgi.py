"""
ASGI entrypoint: expose `app` pour les process managers (ex: uvicorn motoshop.asgi:app).
Toute la configuration FastAPI est centralisée dans motoshop.app.
"""

from motoshop.app import app
