# app/modules/clients/service.py
import logging
from typing import Optional
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.shared.database.models import Client
from .repository import ClientsRepository
from .schemas import (
    ClientType, ClientCreate, ClientUpdate, ClientItem, ClientResponse, ClientListResponse
)

logger = logging.getLogger(__name__)


class ClientsService:

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = ClientsRepository(db, organization_id)

    def get_or_404(self, client_id: int) -> Client:
        client = self.repository.get(client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Cliente no encontrado")
        return client

    def _duplicate_tax_id(self, tax_id: str) -> HTTPException:
        return HTTPException(
            status_code=400,
            detail=f"Ya existe un cliente con identificación {tax_id} en esta organización."
        )

    async def create_client(self, data: ClientCreate) -> ClientResponse:
        if self.repository.get_by_tax_id(data.tax_id):
            raise self._duplicate_tax_id(data.tax_id)

        values = data.dict()
        values["type"] = data.type.value
        try:
            client = self.repository.save(Client(**values))
        except IntegrityError:
            self.db.rollback()
            raise self._duplicate_tax_id(data.tax_id)

        logger.info(f"👤 Cliente creado: {client.display_name} (org {self.organization_id})")
        return ClientResponse(success=True, message="Cliente creado", client=ClientItem.model_validate(client))

    async def update_client(self, client_id: int, data: ClientUpdate) -> ClientResponse:
        client = self.get_or_404(client_id)
        values = data.dict(exclude_unset=True)

        if values.get("tax_id"):
            values["tax_id"] = values["tax_id"].strip()
            other = self.repository.get_by_tax_id(values["tax_id"])
            if other and other.id != client.id:
                raise self._duplicate_tax_id(values["tax_id"])
        if values.get("type"):
            values["type"] = values["type"].value

        for field, value in values.items():
            setattr(client, field, value)

        if client.type == ClientType.INDIVIDUAL.value and not (client.first_name and client.last_name):
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Nombre y apellido son obligatorios para personas físicas")
        if client.type == ClientType.LEGAL_ENTITY.value and not client.company_name:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="La razón social es obligatoria para personas jurídicas")

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise self._duplicate_tax_id(values.get("tax_id", client.tax_id))
        self.db.refresh(client)

        return ClientResponse(success=True, message="Cliente actualizado", client=ClientItem.model_validate(client))

    async def delete_client(self, client_id: int) -> ClientResponse:
        client = self.get_or_404(client_id)
        if self.repository.count_current_accounts(client.id):
            raise HTTPException(
                status_code=400,
                detail="No se puede eliminar el cliente porque tiene cuentas corrientes asociadas"
            )

        item = ClientItem.model_validate(client)
        self.repository.delete(client)
        logger.info(f"🗑️ Cliente eliminado: #{client_id}")
        return ClientResponse(success=True, message="Cliente eliminado", client=item)

    async def get_client(self, client_id: int) -> ClientResponse:
        client = self.get_or_404(client_id)
        return ClientResponse(success=True, message="Cliente obtenido", client=ClientItem.model_validate(client))

    async def get_clients(self, search: Optional[str] = None, status: Optional[str] = None) -> ClientListResponse:
        clients = self.repository.search(search, status)
        return ClientListResponse(
            success=True,
            message=f"{len(clients)} clientes",
            clients=[ClientItem.model_validate(c) for c in clients],
            total=len(clients)
        )
