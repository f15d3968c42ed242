from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.billing_schemas.client_schema import (
    ClientCreate, ClientUpdate,
    ClientResponse, ClientListResponse,
)
from app.services.billing_services import client_service
from app.utils.get_user import get_current_user
from app.utils.check_roles import require_role

router = APIRouter(prefix="/clients", tags=["Clients"])


# CREATE
@router.post("/", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
@require_role(["admin", "sales"])
async def create_client_route(
    client: ClientCreate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await client_service.create_client(db, client, _user)


# GET ALL WITH SEARCH + PAGINATION
@router.get("/", response_model=ClientListResponse)
@require_role(["admin", "sales"])
async def list_clients_route(
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
    search: str = Query(None, description="Text to look for"),
    search_field: str = Query("name", description="Search by: name, pan, gst, id"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    order: str = Query("asc", description="Order: asc or desc"),
):
    return await client_service.list_clients(db, search, search_field, limit, offset, order)


# GET SINGLE
@router.get("/{client_id}", response_model=ClientResponse)
@require_role(["admin", "sales"])
async def get_client_route(
    client_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await client_service.get_client(db, client_id)


# UPDATE
@router.put("/{client_id}", response_model=ClientResponse)
@require_role(["admin"])
async def update_client_route(
    client_id: int,
    client: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await client_service.update_client(db, client_id, client.model_dump(exclude_unset=True), _user)
