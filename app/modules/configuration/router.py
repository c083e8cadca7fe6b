# app/modules/configuration/router.py
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from typing import List

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_root_user, get_current_organization_id, ADMIN_ROLES, ALL_ROLES
)
from .service import ConfigurationService
from .security import SecurityService
from .model_files import ModelFilesService
from .schemas import (
    BranchCreate, BranchUpdate, BranchReorderRequest, BranchResponse, BranchListResponse,
    BrandCreate, BrandUpdate, ModelCreate, BrandItem, BrandResponse,
    OrganizationBrandsResponse, BrandAssociateRequest, BrandReorderRequest, ModelVisibilityRequest,
    ColorCreate, ColorUpdate, ColorResponse, ColorListResponse,
    SecuritySettingsResponse, SecureModeToggleRequest, OTPVerifyRequest,
    ModelFilesResponse
)

router = APIRouter()


# ==================== SUCURSALES ====================

@router.get("/branches", response_model=BranchListResponse)
async def get_branches(
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Sucursales de la organización en su orden configurado"""
    service = ConfigurationService(db, organization_id)
    return await service.get_branches()


@router.post("/branches", response_model=BranchResponse, status_code=201)
async def create_branch(
    data: BranchCreate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.create_branch(data)


@router.put("/branches/reorder", response_model=BranchListResponse)
async def reorder_branches(
    data: BranchReorderRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Reordenar sucursales (drag & drop) en una sola transacción"""
    service = ConfigurationService(db, organization_id)
    return await service.reorder_branches(data)


@router.put("/branches/{branch_id}", response_model=BranchResponse)
async def update_branch(
    branch_id: int,
    data: BranchUpdate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.update_branch(branch_id, data)


@router.delete("/branches/{branch_id}", response_model=BranchResponse)
async def delete_branch(
    branch_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.delete_branch(branch_id)


# ==================== MARCAS GLOBALES (root) ====================

@router.get("/global-brands", response_model=List[BrandItem])
async def get_global_brands(
    current_user = Depends(require_roles(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    """Catálogo global de marcas y modelos disponibles para asociar"""
    service = ConfigurationService(db, None)
    return await service.get_global_brands()


@router.post("/global-brands", response_model=BrandResponse, status_code=201)
async def create_global_brand(
    data: BrandCreate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, None)
    return await service.create_global_brand(data)


@router.put("/global-brands/{brand_id}", response_model=BrandResponse)
async def update_global_brand(
    brand_id: int,
    data: BrandUpdate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, None)
    return await service.update_global_brand(brand_id, data)


@router.post("/global-brands/{brand_id}/models", response_model=BrandResponse, status_code=201)
async def add_model(
    brand_id: int,
    data: ModelCreate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, None)
    return await service.add_model(brand_id, data)


# ==================== ARCHIVOS DE MODELO (root) ====================

@router.post("/models/{model_id}/files", response_model=ModelFilesResponse, status_code=201)
async def upload_model_files(
    model_id: int,
    files: List[UploadFile] = File(..., description="Imágenes o fichas técnicas PDF"),
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    """
    Subir archivos de un modelo a S3

    - Imágenes: se guardan en webp a 800px y 400px
    - PDF: se guardan como ficha técnica
    """
    service = ModelFilesService(db)
    return await service.upload_files(model_id, files)


@router.get("/models/{model_id}/files", response_model=ModelFilesResponse)
async def get_model_files(
    model_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    service = ModelFilesService(db)
    return await service.get_files(model_id)


@router.delete("/model-files/{file_id}", response_model=ModelFilesResponse)
async def delete_model_file(
    file_id: int,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = ModelFilesService(db)
    return await service.delete_file(file_id)


# ==================== MARCAS DE LA ORGANIZACIÓN ====================

@router.get("/brands", response_model=OrganizationBrandsResponse)
async def get_organization_brands(
    only_visible: bool = False,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.get_organization_brands(only_visible)


@router.post("/brands", response_model=OrganizationBrandsResponse, status_code=201)
async def associate_brand(
    data: BrandAssociateRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Asociar una marca global (y todos sus modelos) a la organización"""
    service = ConfigurationService(db, organization_id)
    return await service.associate_brand(data.brand_id)


@router.put("/brands/reorder", response_model=OrganizationBrandsResponse)
async def reorder_brands(
    data: BrandReorderRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.reorder_brands(data)


@router.delete("/brands/{association_id}", response_model=OrganizationBrandsResponse)
async def dissociate_brand(
    association_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.dissociate_brand(association_id)


@router.patch("/models/{model_id}/visibility", response_model=OrganizationBrandsResponse)
async def set_model_visibility(
    model_id: int,
    data: ModelVisibilityRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.set_model_visibility(model_id, data.is_visible)


# ==================== COLORES ====================

@router.get("/colors", response_model=ColorListResponse)
async def get_colors(
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.get_colors()


@router.post("/colors", response_model=ColorResponse, status_code=201)
async def create_color(
    data: ColorCreate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.create_color(data)


@router.put("/colors/{color_id}", response_model=ColorResponse)
async def update_color(
    color_id: int,
    data: ColorUpdate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.update_color(color_id, data)


@router.delete("/colors/{color_id}", response_model=ColorListResponse)
async def delete_color(
    color_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ConfigurationService(db, organization_id)
    return await service.delete_color(color_id)


# ==================== SEGURIDAD ====================

@router.get("/security", response_model=SecuritySettingsResponse)
async def get_security_settings(
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SecurityService(db, organization_id)
    return await service.get_settings()


@router.post("/security/toggle", response_model=SecuritySettingsResponse)
async def toggle_secure_mode(
    data: SecureModeToggleRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Activar o desactivar el modo seguro

    Al activarlo devuelve `otp_auth_url` para configurar la app autenticadora.
    """
    service = SecurityService(db, organization_id)
    return await service.toggle_secure_mode(data.enabled)


@router.post("/security/verify", response_model=SecuritySettingsResponse)
async def verify_otp_setup(
    data: OTPVerifyRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SecurityService(db, organization_id)
    return await service.verify_otp_setup(data.token)


@router.get("/health")
async def configuration_health():
    """Health check del módulo de configuración"""
    return {
        "service": "configuration",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Sucursales con orden personalizado",
            "Marcas y modelos por organización",
            "Colores",
            "Modo seguro con OTP",
            "Archivos de modelos en S3"
        ]
    }
