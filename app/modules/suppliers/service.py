# app/modules/suppliers/service.py
import logging
from typing import List, Optional
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.shared.database.models import Supplier, Motorcycle
from app.shared.database.tenant import TenantRepository, is_foreign_key_violation
from .schemas import (
    SupplierCreate, SupplierUpdate, SupplierItem, SupplierSelectItem,
    SupplierResponse, SupplierListResponse
)

logger = logging.getLogger(__name__)


class SuppliersRepository(TenantRepository):
    model = Supplier

    def get_by_cuit(self, tax_identification: str) -> Optional[Supplier]:
        return self.query().filter(Supplier.tax_identification == tax_identification).first()

    def get_suppliers(self, status: Optional[str] = None) -> List[Supplier]:
        query = self.query()
        if status:
            query = query.filter(Supplier.status == status)
        return query.order_by(Supplier.legal_name.asc()).all()

    def count_motorcycles(self, supplier_id: int) -> int:
        return self.query(Motorcycle).filter(Motorcycle.supplier_id == supplier_id).count()


class SuppliersService:

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = SuppliersRepository(db, organization_id)

    def get_or_404(self, supplier_id: int) -> Supplier:
        supplier = self.repository.get(supplier_id)
        if not supplier:
            raise HTTPException(status_code=404, detail="Proveedor no encontrado")
        return supplier

    async def create_supplier(self, data: SupplierCreate) -> SupplierResponse:
        duplicated = HTTPException(
            status_code=400,
            detail=f"Ya existe un proveedor con CUIT {data.tax_identification} en esta organización."
        )
        if self.repository.get_by_cuit(data.tax_identification):
            raise duplicated

        values = data.dict()
        values["payment_currency"] = values["payment_currency"].upper()
        try:
            supplier = self.repository.save(Supplier(**values))
        except IntegrityError:
            self.db.rollback()
            raise duplicated

        logger.info(f"🏭 Proveedor creado: {supplier.legal_name} (org {self.organization_id})")
        return SupplierResponse(success=True, message="Proveedor creado", supplier=SupplierItem.model_validate(supplier))

    async def update_supplier(self, supplier_id: int, data: SupplierUpdate) -> SupplierResponse:
        supplier = self.get_or_404(supplier_id)
        values = data.dict(exclude_unset=True)

        cuit = values.get("tax_identification")
        duplicated = HTTPException(
            status_code=400,
            detail=f"Ya existe otro proveedor con CUIT {cuit} en esta organización."
        )
        if cuit:
            values["tax_identification"] = cuit = cuit.strip()
            other = self.repository.get_by_cuit(cuit)
            if other and other.id != supplier.id:
                raise duplicated
        if values.get("payment_currency"):
            values["payment_currency"] = values["payment_currency"].upper()

        for field, value in values.items():
            setattr(supplier, field, value)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise duplicated
        self.db.refresh(supplier)

        return SupplierResponse(success=True, message="Proveedor actualizado", supplier=SupplierItem.model_validate(supplier))

    async def delete_supplier(self, supplier_id: int) -> SupplierResponse:
        supplier = self.get_or_404(supplier_id)
        if self.repository.count_motorcycles(supplier.id):
            raise HTTPException(
                status_code=400,
                detail="No se puede eliminar el proveedor porque tiene motocicletas asociadas"
            )

        item = SupplierItem.model_validate(supplier)
        try:
            self.repository.delete(supplier)
        except IntegrityError as e:
            self.db.rollback()
            if is_foreign_key_violation(e):
                raise HTTPException(status_code=400, detail="El proveedor tiene registros asociados")
            raise HTTPException(status_code=500, detail=f"Error eliminando proveedor: {str(e.orig)}")

        return SupplierResponse(success=True, message="Proveedor eliminado", supplier=item)

    async def get_supplier(self, supplier_id: int) -> SupplierResponse:
        supplier = self.get_or_404(supplier_id)
        return SupplierResponse(success=True, message="Proveedor obtenido", supplier=SupplierItem.model_validate(supplier))

    async def get_suppliers(self, status: Optional[str] = None) -> SupplierListResponse:
        suppliers = self.repository.get_suppliers(status)
        return SupplierListResponse(
            success=True,
            message=f"{len(suppliers)} proveedores",
            suppliers=[SupplierItem.model_validate(s) for s in suppliers],
            total=len(suppliers)
        )

    async def get_suppliers_for_select(self) -> List[SupplierSelectItem]:
        """Lista liviana para selects: nombre de fantasía o razón social"""
        return [
            SupplierSelectItem(id=s.id, name=s.commercial_name or s.legal_name)
            for s in self.repository.get_suppliers()
        ]
