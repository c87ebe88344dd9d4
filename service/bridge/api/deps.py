"""
FastAPI dependencies for process-wide handles.

Handles are created in the startup hook and stored on app.state; routes
receive them through Depends so tests can override them.
"""

from fastapi import Request

from bridge.whatsapp.backend_client import BackendClient
from bridge.whatsapp.gateway import WhatsAppGateway
from bridge.whatsapp.session import WhatsAppSession


def get_session(request: Request) -> WhatsAppSession:
    return request.app.state.session


def get_gateway(request: Request) -> WhatsAppGateway:
    return request.app.state.session.gateway


def get_backend(request: Request) -> BackendClient:
    return request.app.state.backend
