# app/modules/organizations/service.py
import logging
from typing import Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.shared.database.models import Organization, User
from app.core.auth.service import AuthService, PLATFORM_ROLE
from app.core.auth.dependencies import can_manage_user
from .repository import OrganizationsRepository
from .schemas import (
    OrganizationCreate, OrganizationUpdate, OrganizationItem, OrganizationResponse,
    UserCreate, UserUpdate, UserItem, UserResponse, UserListResponse
)

logger = logging.getLogger(__name__)


class OrganizationsService:
    """Gestión de organizaciones (root) y usuarios"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = OrganizationsRepository(db)

    def _to_item(self, organization: Organization) -> OrganizationItem:
        return OrganizationItem(
            id=organization.id,
            name=organization.name,
            slug=organization.slug,
            logo=organization.logo,
            thumbnail=organization.thumbnail,
            is_active=organization.is_active,
            secure_mode_enabled=organization.secure_mode_enabled,
            users_count=self.repository.count_users(organization.id),
            branches_count=self.repository.count_branches(organization.id),
            created_at=organization.created_at
        )

    # =====================================================
    # ORGANIZACIONES
    # =====================================================

    async def get_all_organizations(self, search: Optional[str] = None):
        organizations = self.repository.get_all_organizations(search)
        return [self._to_item(o) for o in organizations]

    async def get_organization(self, organization_id: int) -> OrganizationResponse:
        organization = self.repository.get_organization_by_id(organization_id)
        if not organization:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Organización con ID {organization_id} no encontrada"
            )
        return OrganizationResponse(
            success=True,
            message="Organización obtenida",
            organization=self._to_item(organization)
        )

    async def create_organization(self, data: OrganizationCreate) -> OrganizationResponse:
        """Crear organización + administrador inicial en una sola transacción"""

        if self.repository.get_organization_by_slug(data.slug):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"El identificador '{data.slug}' ya está en uso"
            )

        if self.repository.get_user_by_email(data.admin_email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Ya existe un usuario con email {data.admin_email}"
            )

        try:
            organization = Organization(
                name=data.name,
                slug=data.slug,
                logo=data.logo,
                thumbnail=data.thumbnail,
                is_active=True
            )
            self.db.add(organization)
            self.db.flush()

            admin = User(
                organization_id=organization.id,
                email=data.admin_email.lower(),
                password_hash=AuthService.get_password_hash(data.admin_password),
                first_name=data.admin_first_name,
                last_name=data.admin_last_name,
                role="admin",
                is_active=True
            )
            self.db.add(admin)
            self.db.commit()
            self.db.refresh(organization)
            logger.info(f"✅ Organización creada: {organization.slug} (#{organization.id})")

        except Exception as e:
            self.db.rollback()
            logger.exception("❌ Error creando organización")
            raise HTTPException(status_code=500, detail=f"Error creando organización: {str(e)}")

        return OrganizationResponse(
            success=True,
            message="Organización creada exitosamente",
            organization=self._to_item(organization),
            admin_user_id=admin.id
        )

    async def update_organization(self, organization_id: int, data: OrganizationUpdate) -> OrganizationResponse:
        organization = self.repository.get_organization_by_id(organization_id)
        if not organization:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Organización con ID {organization_id} no encontrada"
            )

        for field, value in data.dict(exclude_unset=True).items():
            setattr(organization, field, value)

        self.db.commit()
        self.db.refresh(organization)

        return OrganizationResponse(
            success=True,
            message="Organización actualizada",
            organization=self._to_item(organization)
        )

    # =====================================================
    # USUARIOS
    # =====================================================

    async def create_user(self, organization_id: int, data: UserCreate, current_user: User) -> UserResponse:
        if current_user.role != PLATFORM_ROLE and current_user.organization_id != organization_id:
            raise HTTPException(status_code=403, detail="No puedes crear usuarios en otra organización")

        if data.role == PLATFORM_ROLE and current_user.role != PLATFORM_ROLE:
            raise HTTPException(status_code=403, detail="Solo root puede crear usuarios root")

        if not self.repository.get_organization_by_id(organization_id):
            raise HTTPException(status_code=404, detail=f"Organización con ID {organization_id} no encontrada")

        if self.repository.get_user_by_email(data.email):
            raise HTTPException(status_code=400, detail=f"Ya existe un usuario con email {data.email}")

        if data.branch_id and not self.repository.branch_belongs_to(data.branch_id, organization_id):
            raise HTTPException(status_code=400, detail="Sucursal no encontrada o no pertenece a tu organización.")

        user = User(
            organization_id=organization_id,
            email=data.email.lower(),
            password_hash=AuthService.get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=data.role,
            branch_id=data.branch_id,
            is_active=True
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ Usuario creado: {user.email} ({user.role})")

        return UserResponse(
            success=True,
            message="Usuario creado exitosamente",
            user=UserItem.model_validate(user)
        )

    async def update_user(self, user_id: int, data: UserUpdate, current_user: User) -> UserResponse:
        user = self.repository.get_user_by_id(user_id)
        if not user or not can_manage_user(current_user, user):
            raise HTTPException(status_code=404, detail="Usuario no encontrado")

        if data.role == PLATFORM_ROLE and current_user.role != PLATFORM_ROLE:
            raise HTTPException(status_code=403, detail="Solo root puede asignar el rol root")

        values = data.dict(exclude_unset=True)
        password = values.pop("password", None)

        if values.get("branch_id") and not self.repository.branch_belongs_to(values["branch_id"], user.organization_id):
            raise HTTPException(status_code=400, detail="Sucursal no encontrada o no pertenece a tu organización.")

        for field, value in values.items():
            setattr(user, field, value)
        if password:
            user.password_hash = AuthService.get_password_hash(password)

        self.db.commit()
        self.db.refresh(user)

        return UserResponse(
            success=True,
            message="Usuario actualizado",
            user=UserItem.model_validate(user)
        )

    async def get_users(self, organization_id: int) -> UserListResponse:
        users = self.repository.get_users_by_organization(organization_id)
        return UserListResponse(
            success=True,
            message=f"{len(users)} usuarios",
            users=[UserItem.model_validate(u) for u in users],
            total=len(users)
        )
