# app/services/billing_services/client_service.py
import logging

from fastapi import HTTPException
from sqlalchemy import func, asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.billing_models.client_models import Client
from app.schemas.billing_schemas.client_schema import (
    ClientCreate,
    ClientOut,
    ClientResponse,
    ClientListResponse,
)

logger = logging.getLogger(__name__)

SEARCH_FIELDS = {
    "name": Client.name,
    "pan": Client.pan,
    "gst": Client.gst,
    "id": Client.customer_id,
}


def customer_code(client_id: int) -> str:
    return f"CX{client_id:06d}"


def _normalise(data: dict) -> dict:
    for key in ("pan", "gst"):
        if data.get(key):
            data[key] = data[key].strip().upper()
    return data


# CREATE CLIENT
async def create_client(db: AsyncSession, client_data: ClientCreate, current_user) -> ClientResponse:
    """
    Create a client and return it as stored, so callers can select it
    straight away without re-reading the client list.
    """
    try:
        client = Client(
            **_normalise(client_data.model_dump()),
            created_by=current_user.username,
            updated_by=current_user.username,
        )
        db.add(client)
        await db.flush()
        client.customer_id = customer_code(client.id)

        await db.commit()
        await db.refresh(client)
        logger.info("Client %s created by %s", client.customer_id, current_user.username)
        return ClientResponse(message="Client created successfully", data=ClientOut.model_validate(client))

    except IntegrityError as e:
        await db.rollback()
        if "unique" in str(e.orig).lower() or "duplicate" in str(e.orig).lower():
            raise HTTPException(status_code=400, detail="Client with this email already exists.")
        raise HTTPException(status_code=400, detail=f"Integrity error: {e.orig}")


# GET SINGLE CLIENT
async def get_client(db: AsyncSession, client_id: int) -> ClientResponse:
    client = await db.get(Client, client_id)
    if not client or not client.is_active:
        raise HTTPException(status_code=404, detail="Client not found")
    return ClientResponse(message="Client retrieved successfully", data=ClientOut.model_validate(client))


# LIST / SEARCH CLIENTS
async def list_clients(
    db: AsyncSession,
    search: str = None,
    search_field: str = "name",
    limit: int = 50,
    offset: int = 0,
    order: str = "asc",
) -> ClientListResponse:
    query = select(Client).where(Client.is_active == True)

    warning = None
    column = SEARCH_FIELDS.get((search_field or "name").lower())
    if column is None:
        warning = f"search_field '{search_field}' is invalid, defaulted to 'name'"
        column = Client.name

    if search:
        # PAN / GST are stored upper case; ilike matches any case
        query = query.where(column.ilike(f"%{search.strip()}%"))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    sort_order = desc(Client.id) if order.lower() == "desc" else asc(Client.id)
    query = query.order_by(sort_order).offset(offset).limit(limit)
    clients = (await db.execute(query)).scalars().all()

    return ClientListResponse(
        message="Clients retrieved successfully",
        total=total,
        data=[ClientOut.model_validate(c) for c in clients],
        warning=warning,
    )


# UPDATE CLIENT
async def update_client(db: AsyncSession, client_id: int, data: dict, current_user) -> ClientResponse:
    client = await db.get(Client, client_id)
    if not client or not client.is_active:
        raise HTTPException(status_code=404, detail="Client not found")
    try:
        for key, value in _normalise(dict(data)).items():
            setattr(client, key, value)
        client.updated_by = current_user.username
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="Client with this email already exists.")

    await db.refresh(client)
    return ClientResponse(message="Client updated successfully", data=ClientOut.model_validate(client))
