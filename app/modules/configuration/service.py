# app/modules/configuration/service.py
import logging
from typing import List
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.shared.database.models import (
    Branch, Brand, Model, OrganizationBrand, OrganizationModelConfig, Color
)
from app.shared.database.tenant import is_unique_violation
from .repository import ConfigurationRepository
from .schemas import (
    BranchCreate, BranchUpdate, BranchReorderRequest, BranchItem, BranchResponse, BranchListResponse,
    BrandCreate, BrandUpdate, ModelCreate, BrandItem, ModelItem, BrandResponse,
    OrganizationBrandItem, OrganizationBrandsResponse, BrandReorderRequest,
    ColorCreate, ColorUpdate, ColorItem, ColorResponse, ColorListResponse
)

logger = logging.getLogger(__name__)

BRANCH_NOT_FOUND = "Sucursal no encontrada o no pertenece a tu organización."


class ConfigurationService:
    """Sucursales, marcas/modelos y colores de la organización"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = ConfigurationRepository(db, organization_id)

    # =====================================================
    # SUCURSALES
    # =====================================================

    async def get_branches(self) -> BranchListResponse:
        branches = self.repository.get_branches()
        return BranchListResponse(
            success=True,
            message=f"{len(branches)} sucursales",
            branches=[BranchItem.model_validate(b) for b in branches]
        )

    async def create_branch(self, data: BranchCreate) -> BranchResponse:
        if self.repository.get_branch_by_name(data.name):
            raise HTTPException(status_code=400, detail="La sucursal ya existe en tu organización.")

        try:
            branch = self.repository.save(Branch(
                name=data.name,
                order=self.repository.next_branch_order()
            ))
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="La sucursal ya existe en tu organización.")

        logger.info(f"✅ Sucursal creada: {branch.name} (org {self.organization_id})")
        return BranchResponse(success=True, message="Sucursal creada", branch=BranchItem.model_validate(branch))

    async def update_branch(self, branch_id: int, data: BranchUpdate) -> BranchResponse:
        branch = self.repository.get_branch(branch_id)
        if not branch:
            raise HTTPException(status_code=404, detail=BRANCH_NOT_FOUND)

        duplicate = self.repository.get_branch_by_name(data.name)
        if duplicate and duplicate.id != branch.id:
            raise HTTPException(status_code=400, detail="El nombre de sucursal ya existe en tu organización.")

        branch.name = data.name
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="El nombre de sucursal ya existe en tu organización.")
        self.db.refresh(branch)

        return BranchResponse(success=True, message="Sucursal actualizada", branch=BranchItem.model_validate(branch))

    async def delete_branch(self, branch_id: int) -> BranchResponse:
        branch = self.repository.get_branch(branch_id)
        if not branch:
            raise HTTPException(status_code=404, detail=BRANCH_NOT_FOUND)

        try:
            self.repository.delete(branch)
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=400,
                detail="No se puede eliminar la sucursal porque tiene registros asociados."
            )

        logger.info(f"🗑️ Sucursal eliminada: #{branch_id}")
        return BranchResponse(success=True, message="Sucursal eliminada")

    async def reorder_branches(self, data: BranchReorderRequest) -> BranchListResponse:
        """Actualizar el orden de todas las sucursales en una sola transacción"""
        branch_ids = [item.id for item in data.branches]
        branches = {b.id: b for b in self.repository.query(Branch).filter(Branch.id.in_(branch_ids)).all()}

        missing = [bid for bid in branch_ids if bid not in branches]
        if missing:
            raise HTTPException(status_code=404, detail=BRANCH_NOT_FOUND)

        try:
            for item in data.branches:
                branches[item.id].order = item.order
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            raise HTTPException(status_code=500, detail=f"Error al reordenar sucursales: {str(e)}")

        return await self.get_branches()

    # =====================================================
    # MARCAS GLOBALES (root)
    # =====================================================

    def _brand_item(self, brand: Brand) -> BrandItem:
        return BrandItem(
            id=brand.id,
            name=brand.name,
            color=brand.color,
            models=[ModelItem(id=m.id, name=m.name) for m in brand.models]
        )

    async def get_global_brands(self) -> List[BrandItem]:
        return [self._brand_item(b) for b in self.repository.get_global_brands()]

    async def create_global_brand(self, data: BrandCreate) -> BrandResponse:
        if self.repository.get_global_brand_by_name(data.name):
            raise HTTPException(status_code=400, detail=f"La marca {data.name} ya existe.")

        brand = Brand(name=data.name, color=data.color)
        self.db.add(brand)
        self.db.flush()
        for model_name in sorted({m.strip() for m in data.models if m.strip()}):
            self.db.add(Model(brand_id=brand.id, name=model_name))
        self.db.commit()
        self.db.refresh(brand)

        return BrandResponse(success=True, message="Marca creada", brand=self._brand_item(brand))

    async def update_global_brand(self, brand_id: int, data: BrandUpdate) -> BrandResponse:
        brand = self.repository.get_global_brand(brand_id)
        if not brand:
            raise HTTPException(status_code=404, detail="La marca global no fue encontrada.")

        if data.name:
            duplicate = self.repository.get_global_brand_by_name(data.name)
            if duplicate and duplicate.id != brand.id:
                raise HTTPException(status_code=400, detail=f"La marca {data.name} ya existe.")
            brand.name = data.name.strip()
        if data.color is not None:
            brand.color = data.color

        self.db.commit()
        self.db.refresh(brand)
        return BrandResponse(success=True, message="Marca actualizada", brand=self._brand_item(brand))

    async def add_model(self, brand_id: int, data: ModelCreate) -> BrandResponse:
        """Agregar modelo a una marca global y exponerlo en las organizaciones asociadas"""
        brand = self.repository.get_global_brand(brand_id)
        if not brand:
            raise HTTPException(status_code=404, detail="La marca global no fue encontrada.")
        if self.repository.get_model_by_name(brand_id, data.name):
            raise HTTPException(status_code=400, detail=f"El modelo {data.name} ya existe en {brand.name}.")

        model = Model(brand_id=brand.id, name=data.name)
        self.db.add(model)
        self.db.flush()

        associations = self.db.query(OrganizationBrand).filter(OrganizationBrand.brand_id == brand.id).all()
        for association in associations:
            self.db.add(OrganizationModelConfig(
                organization_id=association.organization_id,
                model_id=model.id,
                is_visible=True,
                order=len(brand.models)
            ))

        self.db.commit()
        self.db.refresh(brand)
        return BrandResponse(success=True, message="Modelo agregado", brand=self._brand_item(brand))

    # =====================================================
    # MARCAS DE LA ORGANIZACIÓN
    # =====================================================

    async def get_organization_brands(self, only_visible: bool = False) -> OrganizationBrandsResponse:
        associations = self.repository.get_organization_brands()
        items = []
        for association in associations:
            brand = association.brand
            configs = {c.model_id: c for c in self.repository.get_model_configs([m.id for m in brand.models])}
            models = []
            for model in brand.models:
                config = configs.get(model.id)
                is_visible = config.is_visible if config else True
                if only_visible and not is_visible:
                    continue
                models.append(ModelItem(
                    id=model.id,
                    name=model.name,
                    is_visible=is_visible,
                    order=config.order if config else 0
                ))
            models.sort(key=lambda m: (m.order, m.name))
            items.append(OrganizationBrandItem(
                association_id=association.id,
                brand_id=brand.id,
                name=brand.name,
                color=association.color,
                order=association.order,
                models=models
            ))

        return OrganizationBrandsResponse(success=True, message=f"{len(items)} marcas", brands=items)

    async def associate_brand(self, brand_id: int) -> OrganizationBrandsResponse:
        """
        Asociar una marca global a la organización.

        Crea la asociación (copiando el color de la marca) y una configuración
        visible por cada modelo, ordenados por nombre. Todo en una transacción.
        """
        brand = self.repository.get_global_brand(brand_id)
        if not brand:
            raise HTTPException(status_code=404, detail="La marca global no fue encontrada.")

        if self.repository.get_organization_brand_by_brand(brand_id):
            raise HTTPException(status_code=400, detail="La marca ya está asociada a esta organización.")

        try:
            self.repository.add(OrganizationBrand(
                brand_id=brand.id,
                color=brand.color,
                order=self.repository.next_brand_order()
            ))
            existing = {c.model_id for c in self.repository.get_model_configs([m.id for m in brand.models])}
            for index, model in enumerate(brand.models):
                if model.id in existing:
                    continue
                self.repository.add(OrganizationModelConfig(
                    model_id=model.id,
                    is_visible=True,
                    order=index
                ))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e):
                raise HTTPException(status_code=400, detail="La marca ya está asociada a esta organización.")
            raise HTTPException(status_code=500, detail=f"Error al asociar la marca: {str(e.orig)}")

        logger.info(f"✅ Marca {brand.name} asociada a org {self.organization_id}")
        return await self.get_organization_brands()

    async def dissociate_brand(self, association_id: int) -> OrganizationBrandsResponse:
        association = self.repository.get_organization_brand(association_id)
        if not association:
            raise HTTPException(
                status_code=404,
                detail="Asociación no encontrada o no pertenece a tu organización."
            )

        model_ids = [m.id for m in association.brand.models]
        for config in self.repository.get_model_configs(model_ids):
            self.db.delete(config)
        self.db.delete(association)
        self.db.commit()

        return await self.get_organization_brands()

    async def reorder_brands(self, data: BrandReorderRequest) -> OrganizationBrandsResponse:
        associations = {a.id: a for a in self.repository.get_organization_brands()}
        if any(aid not in associations for aid in data.association_ids):
            raise HTTPException(
                status_code=404,
                detail="Asociación no encontrada o no pertenece a tu organización."
            )

        for index, association_id in enumerate(data.association_ids):
            associations[association_id].order = index
        self.db.commit()

        return await self.get_organization_brands()

    async def set_model_visibility(self, model_id: int, is_visible: bool) -> OrganizationBrandsResponse:
        model = self.repository.get_model(model_id)
        if not model or not self.repository.is_brand_enabled(model.brand_id):
            raise HTTPException(status_code=404, detail="Modelo no encontrado en tu organización")

        config = self.repository.get_model_config(model_id)
        if not config:
            config = self.repository.add(OrganizationModelConfig(model_id=model_id, order=0))
        config.is_visible = is_visible
        self.db.commit()

        return await self.get_organization_brands()

    # =====================================================
    # COLORES
    # =====================================================

    async def get_colors(self) -> ColorListResponse:
        colors = self.repository.get_colors()
        return ColorListResponse(
            success=True,
            message=f"{len(colors)} colores",
            colors=[ColorItem.model_validate(c) for c in colors]
        )

    async def create_color(self, data: ColorCreate) -> ColorResponse:
        if self.repository.get_color_by_name(data.name):
            raise HTTPException(status_code=400, detail=f"El color {data.name} ya existe en tu organización.")

        color = self.repository.save(Color(
            name=data.name.strip(),
            type=data.type.value,
            color_one=data.color_one,
            color_two=data.color_two,
            order=self.repository.next_color_order()
        ))
        return ColorResponse(success=True, message="Color creado", color=ColorItem.model_validate(color))

    async def update_color(self, color_id: int, data: ColorUpdate) -> ColorResponse:
        color = self.repository.get_color(color_id)
        if not color:
            raise HTTPException(status_code=404, detail="Color no encontrado")

        values = data.dict(exclude_unset=True)
        if values.get("name"):
            duplicate = self.repository.get_color_by_name(values["name"])
            if duplicate and duplicate.id != color.id:
                raise HTTPException(status_code=400, detail=f"El color {values['name']} ya existe en tu organización.")
        if values.get("type") is not None:
            values["type"] = values["type"].value

        for field, value in values.items():
            setattr(color, field, value)
        self.db.commit()
        self.db.refresh(color)

        return ColorResponse(success=True, message="Color actualizado", color=ColorItem.model_validate(color))

    async def delete_color(self, color_id: int) -> ColorListResponse:
        color = self.repository.get_color(color_id)
        if not color:
            raise HTTPException(status_code=404, detail="Color no encontrado")

        try:
            self.repository.delete(color)
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="No se puede eliminar un color en uso por motocicletas.")

        return await self.get_colors()
