# app/modules/payment_methods/service.py
import logging
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.shared.database.models import (
    PaymentMethod, OrganizationPaymentMethod, PaymentCard, OrganizationPaymentCard
)
from .repository import PaymentMethodsRepository
from .schemas import (
    PaymentMethodCreate, PaymentMethodItem, PaymentCardCreate, PaymentCardItem, CatalogSyncResponse,
    ReorderRequest, OrganizationMethodItem, OrganizationCardItem,
    OrganizationMethodsResponse, OrganizationCardsResponse
)

logger = logging.getLogger(__name__)

ASSOCIATION_NOT_FOUND = "Asociación no encontrada o no pertenece a tu organización."

# Catálogo base; "current_account" queda habilitado al inicializar una organización
DEFAULT_PAYMENT_METHODS = [
    {"name": "Efectivo", "type": "cash", "description": "Pago en efectivo",
     "icon_url": "/icons/payment-methods/cash.svg"},
    {"name": "Tarjeta de Crédito", "type": "credit", "description": "Pago con tarjeta de crédito",
     "icon_url": "/icons/payment-methods/credit-card.svg"},
    {"name": "Tarjeta de Débito", "type": "debit", "description": "Pago con tarjeta de débito",
     "icon_url": "/icons/payment-methods/debit-card.svg"},
    {"name": "Transferencia Bancaria", "type": "transfer", "description": "Pago por transferencia bancaria",
     "icon_url": "/icons/payment-methods/bank-transfer.svg"},
    {"name": "Cheque", "type": "check", "description": "Pago con cheque",
     "icon_url": "/icons/payment-methods/check.svg"},
    {"name": "Depósito Bancario", "type": "deposit", "description": "Pago por depósito bancario",
     "icon_url": "/icons/payment-methods/bank-deposit.svg"},
    {"name": "MercadoPago", "type": "mercadopago", "description": "Pago a través de MercadoPago",
     "icon_url": "/icons/payment-methods/mercadopago.svg"},
    {"name": "Código QR", "type": "qr", "description": "Pago mediante escaneo de código QR",
     "icon_url": "/icons/payment-methods/qr-code.svg"},
    {"name": "Criptomonedas/USDT", "type": "crypto", "description": "Pago con criptomonedas o USDT",
     "icon_url": "/icons/payment-methods/crypto.svg"},
    {"name": "Cuenta Corriente", "type": "current_account", "description": "Pago con cuenta corriente financiada",
     "icon_url": "/icons/payment-methods/current-account.svg"},
]
ENABLED_BY_DEFAULT = {"current_account"}


class PaymentMethodsService:
    """Métodos de pago y tarjetas: catálogo global y configuración por organización"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = PaymentMethodsRepository(db, organization_id)

    # =====================================================
    # CATÁLOGO GLOBAL
    # =====================================================

    async def get_all_methods(self):
        return [PaymentMethodItem.model_validate(m) for m in self.repository.get_all_methods()]

    async def create_method(self, data: PaymentMethodCreate) -> PaymentMethodItem:
        if self.repository.get_method_by_type(data.type):
            raise HTTPException(status_code=400, detail=f"Ya existe un método de pago de tipo '{data.type}'")

        method = PaymentMethod(**data.dict())
        self.db.add(method)
        self.db.commit()
        self.db.refresh(method)
        logger.info(f"✅ Método de pago global creado: {method.name} ({method.type})")
        return PaymentMethodItem.model_validate(method)

    async def sync_default_methods(self) -> CatalogSyncResponse:
        """Crear o actualizar (por tipo) los métodos del catálogo base"""
        created = updated = 0
        for values in DEFAULT_PAYMENT_METHODS:
            method = self.repository.get_method_by_type(values["type"])
            if method:
                method.name = values["name"]
                method.description = values["description"]
                method.icon_url = values["icon_url"]
                updated += 1
            else:
                self.db.add(PaymentMethod(**values))
                created += 1
        self.db.commit()

        logger.info(f"🔄 Catálogo de métodos de pago sincronizado: {created} nuevos, {updated} actualizados")
        return CatalogSyncResponse(
            success=True,
            message="Catálogo de métodos de pago sincronizado",
            created=created,
            updated=updated,
            methods=await self.get_all_methods()
        )

    async def get_all_cards(self):
        return [PaymentCardItem.model_validate(c) for c in self.repository.get_all_cards()]

    async def create_card(self, data: PaymentCardCreate) -> PaymentCardItem:
        if self.repository.get_card_by_name(data.name):
            raise HTTPException(status_code=400, detail=f"La tarjeta '{data.name}' ya existe")

        card = PaymentCard(name=data.name, type=data.type.value, issuer=data.issuer, logo_url=data.logo_url)
        self.db.add(card)
        self.db.commit()
        self.db.refresh(card)
        logger.info(f"✅ Tarjeta global creada: {card.name}")
        return PaymentCardItem.model_validate(card)

    # =====================================================
    # MÉTODOS DE LA ORGANIZACIÓN
    # =====================================================

    async def get_organization_methods(self, enabled_only: bool = False) -> OrganizationMethodsResponse:
        methods = self.repository.get_organization_methods(enabled_only)
        return OrganizationMethodsResponse(
            success=True,
            message=f"{len(methods)} métodos de pago",
            methods=[OrganizationMethodItem.model_validate(m) for m in methods]
        )

    async def get_available_methods(self):
        return [PaymentMethodItem.model_validate(m) for m in self.repository.get_available_methods()]

    async def associate_method(self, method_id: int) -> OrganizationMethodsResponse:
        if not self.repository.get_method(method_id):
            raise HTTPException(status_code=404, detail="Método de pago no encontrado")
        if self.repository.get_organization_method_by_method(method_id):
            raise HTTPException(status_code=400, detail="Este método de pago ya está asociado a la organización.")

        try:
            self.repository.save(OrganizationPaymentMethod(
                method_id=method_id,
                is_enabled=True,
                order=self.repository.next_order(OrganizationPaymentMethod)
            ))
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Este método de pago ya está asociado a la organización.")

        logger.info(f"✅ Método de pago {method_id} asociado a org {self.organization_id}")
        return await self.get_organization_methods()

    async def initialize_methods(self) -> OrganizationMethodsResponse:
        """
        Asociar a la organización todo el catálogo que le falte.

        Las asociaciones nuevas quedan deshabilitadas salvo Cuenta Corriente;
        las existentes conservan su estado.
        """
        next_order = self.repository.next_order(OrganizationPaymentMethod)
        added = 0
        for method in self.repository.get_available_methods():
            self.repository.add(OrganizationPaymentMethod(
                method_id=method.id,
                is_enabled=method.type in ENABLED_BY_DEFAULT,
                order=next_order + added
            ))
            added += 1
        self.db.commit()

        logger.info(f"🧩 {added} métodos de pago inicializados en org {self.organization_id}")
        return await self.get_organization_methods()

    async def toggle_method(self, association_id: int, is_enabled: bool) -> OrganizationMethodsResponse:
        association = self.repository.get(association_id)
        if not association:
            raise HTTPException(status_code=404, detail=ASSOCIATION_NOT_FOUND)

        association.is_enabled = is_enabled
        self.db.commit()
        response = await self.get_organization_methods()
        response.message = f"Método de pago {'habilitado' if is_enabled else 'deshabilitado'} correctamente."
        return response

    async def reorder_methods(self, data: ReorderRequest) -> OrganizationMethodsResponse:
        self._reorder(OrganizationPaymentMethod, data)
        return await self.get_organization_methods()

    async def remove_method(self, association_id: int) -> OrganizationMethodsResponse:
        association = self.repository.get(association_id)
        if not association:
            raise HTTPException(status_code=404, detail=ASSOCIATION_NOT_FOUND)

        self.repository.delete(association)
        logger.info(f"🗑️ Método de pago desasociado (asociación #{association_id})")
        return await self.get_organization_methods()

    # =====================================================
    # TARJETAS DE LA ORGANIZACIÓN
    # =====================================================

    async def get_organization_cards(self, enabled_only: bool = False) -> OrganizationCardsResponse:
        cards = self.repository.get_organization_cards(enabled_only)
        return OrganizationCardsResponse(
            success=True,
            message=f"{len(cards)} tarjetas",
            cards=[OrganizationCardItem.model_validate(c) for c in cards]
        )

    async def get_available_cards(self):
        return [PaymentCardItem.model_validate(c) for c in self.repository.get_available_cards()]

    async def associate_card(self, card_id: int) -> OrganizationCardsResponse:
        if not self.repository.get_card(card_id):
            raise HTTPException(status_code=404, detail="Tarjeta no encontrada")
        if self.repository.get_organization_card_by_card(card_id):
            raise HTTPException(status_code=400, detail="Esta tarjeta ya está asociada a la organización.")

        try:
            self.repository.save(OrganizationPaymentCard(
                card_id=card_id,
                is_enabled=True,
                order=self.repository.next_order(OrganizationPaymentCard)
            ))
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Esta tarjeta ya está asociada a la organización.")

        return await self.get_organization_cards()

    async def toggle_card(self, association_id: int, is_enabled: bool) -> OrganizationCardsResponse:
        association = self.repository.get_organization_card(association_id)
        if not association:
            raise HTTPException(status_code=404, detail=ASSOCIATION_NOT_FOUND)

        association.is_enabled = is_enabled
        self.db.commit()
        response = await self.get_organization_cards()
        response.message = f"Tarjeta {'habilitada' if is_enabled else 'deshabilitada'} correctamente."
        return response

    async def reorder_cards(self, data: ReorderRequest) -> OrganizationCardsResponse:
        self._reorder(OrganizationPaymentCard, data)
        return await self.get_organization_cards()

    async def remove_card(self, association_id: int) -> OrganizationCardsResponse:
        association = self.repository.get_organization_card(association_id)
        if not association:
            raise HTTPException(status_code=404, detail=ASSOCIATION_NOT_FOUND)

        self.repository.delete(association)
        return await self.get_organization_cards()

    def _reorder(self, model, data: ReorderRequest) -> None:
        """Aplicar el nuevo orden en una sola transacción"""
        ids = [item.id for item in data.items]
        associations = {a.id: a for a in self.repository.query(model).filter(model.id.in_(ids)).all()}
        if any(association_id not in associations for association_id in ids):
            raise HTTPException(status_code=404, detail=ASSOCIATION_NOT_FOUND)

        for item in data.items:
            associations[item.id].order = item.order
        self.db.commit()
