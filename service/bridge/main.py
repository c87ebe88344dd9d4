from fastapi import BackgroundTasks, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bridge.config import get_settings
from bridge.errors import ValidationError
from bridge.api.relay import router as relay_router
from bridge.api.status import router as status_router
from bridge.whatsapp import BackendClient, WhatsAppGateway, WhatsAppSession, handle_gateway_event
from bridge.whatsapp.logging_config import bot_logger as logger

app = FastAPI(
    title="Relámpago Express WhatsApp Bridge",
    description="Relay between WhatsApp chats and the order backend",
    version="0.1.0"
)


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    """Create shared clients and start the WhatsApp session."""
    logger.info("[STARTUP] Initializing WhatsApp session...")
    app.state.backend = BackendClient()
    app.state.session = WhatsAppSession(WhatsAppGateway())
    await app.state.session.start()
    logger.info(f"[STARTUP] Relámpago Express bridge listening on port {get_settings().port}")


@app.on_event("shutdown")
async def shutdown_event():
    """Tear the WhatsApp session down before the process exits."""
    logger.info("[SHUTDOWN] Closing WhatsApp session...")
    session: WhatsAppSession = app.state.session
    await session.stop()
    await session.gateway.close()
    await app.state.backend.close()
    logger.info("[SHUTDOWN] Bridge stopped")


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
    """Turn any unhandled error into the generic 500 envelope."""
    try:
        return await call_next(request)
    except Exception as e:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={
            "status": "error",
            "message": "Error interno del servidor",
            "error": str(e),
        })


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={
        "status": "error",
        "message": str(exc),
    })


# WhatsApp gateway webhook endpoint
@app.post("/whatsapp/webhook")
async def whatsapp_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_webhook_secret: str = Header(None)
):
    """
    Webhook endpoint for WhatsApp gateway events.

    The gateway posts qr / authenticated / ready / disconnected / message
    events here.
    """
    settings = get_settings()

    # Verify secret token if configured
    if settings.whatsapp_webhook_secret:
        if x_webhook_secret != settings.whatsapp_webhook_secret:
            raise HTTPException(status_code=403, detail="Invalid secret token")

    update_data = await request.json()

    # Handle after the response is sent (fast 200 OK for the gateway)
    background_tasks.add_task(
        handle_gateway_event, update_data, request.app.state.session, request.app.state.backend
    )

    return {"ok": True}


# Include routers
app.include_router(status_router)
app.include_router(relay_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
