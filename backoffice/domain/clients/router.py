"""Client router - FastAPI endpoints for client operations"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.results import unwrap
from .schemas import ClientCreate, ClientResponse, ClientUpdate, client_response
from .service import ClientService

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Get all clients for the current user"""
    return [client_response(c) for c in unwrap(service.get_clients(current_user))]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    return client_response(unwrap(service.get_client(client_id, current_user)))


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    return client_response(unwrap(service.create_client(data, current_user)))


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    return client_response(unwrap(service.update_client(client_id, data, current_user)))


@router.delete("/{client_id}")
async def delete_client(
    client_id: int,
    current_user: User = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    """Delete a client. Refused while any invoice references it."""
    unwrap(service.delete_client(client_id, current_user))
    return {"message": "Client deleted successfully"}
