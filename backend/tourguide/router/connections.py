"""
Connection Router
Tourist/guide connection requests, status changes and messaging
"""

import logging

from fastapi import APIRouter, Depends, Query

from tourguide.core.errors import NotFoundError, ValidationError
from tourguide.db.storage import Storage, get_storage
from tourguide.models.connection import (
    Connection,
    ConnectionCreate,
    ConnectionDetail,
    ConnectionStatusUpdate,
    Message,
    MessageCreate,
)
from tourguide.services.auth import sanitize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/connections", tags=["Connections"])


async def connection_detail(storage: Storage, connection: Connection) -> ConnectionDetail:
    """Attach both users (without passwords) and the guide's profile, if either side is a guide."""
    from_user = await storage.get_user(connection.from_user_id)
    to_user = await storage.get_user(connection.to_user_id)

    guide = next((u for u in (from_user, to_user) if u is not None and u.user_type == "guide"), None)
    guide_profile = await storage.get_guide_profile(guide.id) if guide else None

    return ConnectionDetail(
        **connection.model_dump(),
        from_user=sanitize_user(from_user) if from_user else None,
        to_user=sanitize_user(to_user) if to_user else None,
        guide_profile=guide_profile,
    )


async def _require_connection(storage: Storage, connection_id: str) -> Connection:
    connection = await storage.get_connection(connection_id)
    if connection is None:
        raise NotFoundError("Connection not found")
    return connection


@router.post("", status_code=201, response_model=Connection)
async def create_connection(body: ConnectionCreate, storage: Storage = Depends(get_storage)):
    if body.from_user_id == body.to_user_id:
        raise ValidationError("Cannot connect with yourself")

    for user_id in (body.from_user_id, body.to_user_id):
        if await storage.get_user(user_id) is None:
            raise NotFoundError(f"User {user_id} not found")

    connection = await storage.create_connection(body)
    logger.info(
        f"[connections] {connection.from_user_id} -> {connection.to_user_id} created ({connection.status})"
    )
    return connection


@router.get("", response_model=list[ConnectionDetail])
async def list_connections(
    user_id: str = Query(..., description="Either side of the connection"),
    storage: Storage = Depends(get_storage),
):
    connections = await storage.list_connections(user_id)
    return [await connection_detail(storage, c) for c in connections]


@router.get("/{connection_id}", response_model=ConnectionDetail)
async def get_connection(connection_id: str, storage: Storage = Depends(get_storage)):
    connection = await _require_connection(storage, connection_id)
    return await connection_detail(storage, connection)


@router.patch("/{connection_id}/status", response_model=Connection)
@router.patch("/{connection_id}", response_model=Connection, include_in_schema=False)
async def update_connection_status(
    connection_id: str,
    body: ConnectionStatusUpdate,
    storage: Storage = Depends(get_storage),
):
    connection = await storage.update_connection_status(connection_id, body.status)
    if connection is None:
        raise NotFoundError("Connection not found")
    logger.info(f"[connections] {connection_id} is now {body.status}")
    return connection


@router.get("/{connection_id}/messages", response_model=list[Message])
async def list_messages(connection_id: str, storage: Storage = Depends(get_storage)):
    await _require_connection(storage, connection_id)
    return await storage.list_messages(connection_id)


@router.post("/{connection_id}/messages", status_code=201, response_model=Message)
async def send_message(
    connection_id: str,
    body: MessageCreate,
    storage: Storage = Depends(get_storage),
):
    """
    Post a message to the other side of an accepted connection.
    """
    connection = await _require_connection(storage, connection_id)
    if not connection.involves(body.sender_id):
        raise ValidationError("Sender is not part of this connection")
    if connection.status != "accepted":
        raise ValidationError("Messages can only be sent on accepted connections")

    message = Message(
        connection_id=connection_id,
        sender_id=body.sender_id,
        recipient_id=connection.other_party(body.sender_id),
        content=body.content,
    )
    return await storage.create_message(message)
