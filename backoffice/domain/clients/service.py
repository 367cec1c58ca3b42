"""Client service - Business logic for client operations"""

import logging

from sqlalchemy.orm import Session

from ...models import Client, User
from ...shared.errors import Forbidden, NotFound
from ...shared.results import action
from .repository import IMPORTED_CLIENT_NAME, ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def require_client(self, client_id: int, user_id: int) -> Client:
        """Owned client or NotFound"""
        client = self.repo.get_client_by_id(self.db, client_id, user_id)
        if not client:
            raise NotFound("Client not found")
        return client

    def get_or_create_default_client(self, user_id: int) -> Client:
        """First client of the account, or a placeholder for imported jobs"""
        client = self.repo.get_first_client(self.db, user_id)
        if client:
            return client
        logger.info(f"📥 Creating placeholder client for imported events (user {user_id})")
        return self.repo.create_client(
            self.db,
            user_id,
            name=IMPORTED_CLIENT_NAME,
            notes="Creado automáticamente al importar eventos de Google Calendar",
        )

    @action("Error loading clients")
    def get_clients(self, user: User):
        return self.repo.get_clients(self.db, user.id)

    @action("Error loading client")
    def get_client(self, client_id: int, user: User):
        return self.require_client(client_id, user.id)

    @action("Error creating client")
    def create_client(self, data: ClientCreate, user: User):
        logger.info(f"📥 Creating client for user_id: {user.id}")
        return self.repo.create_client(
            self.db,
            user.id,
            name=data.name,
            tax_id=data.taxId,
            email=data.email,
            phone=data.phone,
            address=data.address,
            city=data.city,
            postal_code=data.postalCode,
            notes=data.notes,
        )

    @action("Error updating client")
    def update_client(self, client_id: int, data: ClientUpdate, user: User):
        client = self.require_client(client_id, user.id)
        updates = {
            "name": data.name,
            "tax_id": data.taxId,
            "email": data.email,
            "phone": data.phone,
            "address": data.address,
            "city": data.city,
            "postal_code": data.postalCode,
            "notes": data.notes,
        }
        return self.repo.update_client(self.db, client, **updates)

    @action("Error deleting client")
    def delete_client(self, client_id: int, user: User):
        client = self.require_client(client_id, user.id)
        invoice_count = self.repo.count_invoices(self.db, client.id, user.id)
        if invoice_count:
            logger.warning(f"⚠️ Refusing to delete client {client.id}: {invoice_count} invoices reference it")
            raise Forbidden("This client has invoices and cannot be deleted")
        self.repo.delete_client(self.db, client)
        logger.info(f"✅ Deleted client {client_id} for user {user.id}")
