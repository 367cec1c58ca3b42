"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Client
from ...models_invoice import Invoice

IMPORTED_CLIENT_NAME = "Cliente General (Importado)"


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(db: Session, user_id: int) -> list[Client]:
        """Get all clients for a user, by name"""
        return db.query(Client).filter(Client.user_id == user_id).order_by(Client.name.asc()).all()

    @staticmethod
    def get_client_by_id(db: Session, client_id: int, user_id: int) -> Optional[Client]:
        """Get a specific client by ID"""
        return db.query(Client).filter(Client.id == client_id, Client.user_id == user_id).first()

    @staticmethod
    def get_first_client(db: Session, user_id: int) -> Optional[Client]:
        """Oldest client of the account"""
        return (
            db.query(Client)
            .filter(Client.user_id == user_id)
            .order_by(Client.created_at.asc(), Client.id.asc())
            .first()
        )

    @staticmethod
    def create_client(db: Session, user_id: int, **client_data) -> Client:
        """Create a new client"""
        client = Client(user_id=user_id, **client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(client, key):
                setattr(client, key, value)

        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def count_invoices(db: Session, client_id: int, user_id: int) -> int:
        return (
            db.query(Invoice)
            .filter(Invoice.client_id == client_id, Invoice.user_id == user_id)
            .count()
        )

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        """Delete a client"""
        db.delete(client)
        db.commit()
