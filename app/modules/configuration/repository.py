# app/modules/configuration/repository.py
from sqlalchemy import func
from typing import List, Optional

from app.shared.database.models import (
    Branch, Brand, Model, OrganizationBrand, OrganizationModelConfig,
    Color
)
from app.shared.database.tenant import TenantRepository


class ConfigurationRepository(TenantRepository):
    """Acceso a datos de configuración de la organización"""

    # ==================== SUCURSALES ====================

    def get_branches(self) -> List[Branch]:
        return self.query(Branch).order_by(Branch.order.asc(), Branch.id.asc()).all()

    def get_branch(self, branch_id: int) -> Optional[Branch]:
        return self.get(branch_id, Branch)

    def get_branch_by_name(self, name: str) -> Optional[Branch]:
        return self.query(Branch).filter(func.lower(Branch.name) == name.lower()).first()

    def next_branch_order(self) -> int:
        max_order = self.db.query(func.max(Branch.order)).filter(
            Branch.organization_id == self.organization_id
        ).scalar()
        return (max_order if max_order is not None else -1) + 1

    # ==================== MARCAS (globales) ====================

    def get_global_brand(self, brand_id: int) -> Optional[Brand]:
        return self.db.query(Brand).filter(Brand.id == brand_id).first()

    def get_global_brand_by_name(self, name: str) -> Optional[Brand]:
        return self.db.query(Brand).filter(func.lower(Brand.name) == name.lower()).first()

    def get_global_brands(self) -> List[Brand]:
        return self.db.query(Brand).order_by(Brand.name.asc()).all()

    def get_model(self, model_id: int) -> Optional[Model]:
        return self.db.query(Model).filter(Model.id == model_id).first()

    def get_model_by_name(self, brand_id: int, name: str) -> Optional[Model]:
        return self.db.query(Model).filter(
            Model.brand_id == brand_id,
            func.lower(Model.name) == name.lower()
        ).first()

    # ==================== MARCAS (organización) ====================

    def get_organization_brands(self) -> List[OrganizationBrand]:
        return self.query(OrganizationBrand).order_by(OrganizationBrand.order.asc()).all()

    def get_organization_brand(self, association_id: int) -> Optional[OrganizationBrand]:
        return self.get(association_id, OrganizationBrand)

    def get_organization_brand_by_brand(self, brand_id: int) -> Optional[OrganizationBrand]:
        return self.query(OrganizationBrand).filter(OrganizationBrand.brand_id == brand_id).first()

    def next_brand_order(self) -> int:
        max_order = self.db.query(func.max(OrganizationBrand.order)).filter(
            OrganizationBrand.organization_id == self.organization_id
        ).scalar()
        return (max_order if max_order is not None else -1) + 1

    def get_model_configs(self, model_ids: List[int]) -> List[OrganizationModelConfig]:
        if not model_ids:
            return []
        return self.query(OrganizationModelConfig).filter(
            OrganizationModelConfig.model_id.in_(model_ids)
        ).all()

    def get_model_config(self, model_id: int) -> Optional[OrganizationModelConfig]:
        return self.query(OrganizationModelConfig).filter(
            OrganizationModelConfig.model_id == model_id
        ).first()

    def is_brand_enabled(self, brand_id: int) -> bool:
        return self.get_organization_brand_by_brand(brand_id) is not None

    # ==================== COLORES ====================

    def get_colors(self) -> List[Color]:
        return self.query(Color).order_by(Color.order.asc(), Color.name.asc()).all()

    def get_color(self, color_id: int) -> Optional[Color]:
        return self.get(color_id, Color)

    def get_color_by_name(self, name: str) -> Optional[Color]:
        return self.query(Color).filter(func.lower(Color.name) == name.lower()).first()

    def next_color_order(self) -> int:
        max_order = self.db.query(func.max(Color.order)).filter(
            Color.organization_id == self.organization_id
        ).scalar()
        return (max_order if max_order is not None else -1) + 1

