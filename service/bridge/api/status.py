"""
Status API.

Operator-facing status page with a live QR viewer, a JSON status check,
and the WebSocket channel that pushes session lifecycle events.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse

from bridge.config import get_settings
from bridge.whatsapp.session import WhatsAppSession
from .deps import get_session

router = APIRouter(tags=["status"])

STATUS_PAGE = """<!DOCTYPE html>
<html lang="es">
<head>
  <meta charset="UTF-8">
  <title>Relámpago Express - Escanea el QR</title>
  <script src="https://cdn.jsdelivr.net/npm/qrcode@1.5.1/build/qrcode.min.js"></script>
  <style>
    body {
      display: flex;
      flex-direction: column;
      align-items: center;
      justify-content: center;
      height: 100vh;
      margin: 0;
      font-family: sans-serif;
      background: #f5f5f5;
    }
    #qr { margin: 20px; }
    h1 { color: #333; }
    p { color: #666; }
  </style>
</head>
<body>
  <h1>Escanea el QR con tu WhatsApp</h1>
  <canvas id="qr"></canvas>
  <p id="status">Esperando QR...</p>

  <script>
    const statusEl = document.getElementById('status');
    const canvasEl = document.getElementById('qr');

    function connect() {
      const scheme = location.protocol === 'https:' ? 'wss' : 'ws';
      const socket = new WebSocket(`${scheme}://${location.host}/ws`);

      socket.onmessage = (msg) => {
        const { event, data } = JSON.parse(msg.data);
        if (event === 'qr') {
          statusEl.innerText = '¡QR recibido! Generando imagen...';
          QRCode.toCanvas(canvasEl, data, { width: 300 }, err => {
            statusEl.innerText = err ? 'Error generando el QR' : 'Escanea con WhatsApp';
          });
        } else if (event === 'authenticated') {
          statusEl.innerText = '🔒 Autenticado';
        } else if (event === 'ready') {
          statusEl.innerText = '✅ Bot listo';
        } else if (event === 'disconnected') {
          statusEl.innerText = '⚠️ Desconectado, reconectando...';
        }
      };

      socket.onclose = () => setTimeout(connect, 2000);
    }

    connect();
  </script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
async def status_page():
    """Live QR viewer."""
    return STATUS_PAGE


@router.get("/status")
async def get_status(session: WhatsAppSession = Depends(get_session)):
    """Service status check."""
    settings = get_settings()
    return {
        "status": "active",
        "service": settings.service_name,
        "ready": session.is_ready,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.websocket("/ws")
async def session_events(websocket: WebSocket):
    """Push qr / authenticated / ready / disconnected events to the status page."""
    session: WhatsAppSession = websocket.app.state.session
    await session.viewers.connect(websocket, session.state)
    try:
        while True:
            # Viewers never send anything meaningful; keep the socket open
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        session.viewers.disconnect(websocket)
