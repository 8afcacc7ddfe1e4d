"""ASGI entrypoint: uvicorn roomdesk.api.app:app"""

from roomdesk.api.factory import create_app

app = create_app()
