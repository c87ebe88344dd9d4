"""
Outbound relay API.

Endpoints the order backend calls to push messages and locations to a
WhatsApp recipient (customer, restaurant or courier).
"""

from typing import Optional, Union

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from bridge.errors import SendFailure, ValidationError
from bridge.utils.normalize import to_chat_id
from bridge.whatsapp.gateway import WhatsAppGateway
from bridge.whatsapp.logging_config import bot_logger as logger
from .deps import get_gateway

router = APIRouter(tags=["relay"])


class ForwardMessageRequest(BaseModel):
    to: Optional[Union[str, int]] = None
    message: Optional[str] = None
    order_id: Optional[Union[str, int]] = None


class ForwardLocationRequest(BaseModel):
    to: Optional[Union[str, int]] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    order_id: Optional[Union[str, int]] = None


class RelayResponse(BaseModel):
    status: str
    message: str
    order_id: Optional[Union[str, int]] = None


def _order_suffix(order_id) -> str:
    return f" for order {order_id}" if order_id else ""


@router.post("/forward-message", response_model=RelayResponse)
async def forward_message(
    request: Optional[ForwardMessageRequest] = Body(None),
    gateway: WhatsAppGateway = Depends(get_gateway)
):
    """
    Send a text message to a WhatsApp recipient.
    """
    if request is None:
        request = ForwardMessageRequest()

    if not request.to or not request.message:
        raise ValidationError("Se requiere número de teléfono y mensaje")

    chat_id = to_chat_id(request.to)
    logger.info(f"Sending message to {chat_id}{_order_suffix(request.order_id)}")

    try:
        await gateway.send_message(chat_id, request.message)
    except SendFailure as e:
        logger.error(f"Error forwarding message to {chat_id}: {e}")
        return JSONResponse(status_code=500, content={
            "status": "error",
            "message": "Error al enviar mensaje",
            "error": str(e),
        })

    return RelayResponse(
        status="success",
        message="Mensaje enviado correctamente",
        order_id=request.order_id or None,
    )


@router.post("/forward-location", response_model=RelayResponse)
async def forward_location(
    request: Optional[ForwardLocationRequest] = Body(None),
    gateway: WhatsAppGateway = Depends(get_gateway)
):
    """
    Send a location pin to a WhatsApp recipient.

    Coordinates of 0 are valid.
    """
    if request is None:
        request = ForwardLocationRequest()

    if not request.to or request.latitude is None or request.longitude is None:
        raise ValidationError("Se requiere número de teléfono y coordenadas de ubicación")

    chat_id = to_chat_id(request.to)
    logger.info(
        f"Sending location to {chat_id}{_order_suffix(request.order_id)}: "
        f"{request.latitude}, {request.longitude}"
    )

    try:
        await gateway.send_location(chat_id, request.latitude, request.longitude)
    except SendFailure as e:
        logger.error(f"Error forwarding location to {chat_id}: {e}")
        return JSONResponse(status_code=500, content={
            "status": "error",
            "message": "Error al enviar ubicación",
            "error": str(e),
        })

    return RelayResponse(
        status="success",
        message="Ubicación enviada correctamente",
        order_id=request.order_id or None,
    )
