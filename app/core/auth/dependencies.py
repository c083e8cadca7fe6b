from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.shared.database.models import User, Organization
from app.core.auth.service import AuthService, PLATFORM_ROLE

security = HTTPBearer()

ADMIN_ROLES = ["admin", "root"]
CASH_ROLES = ["admin", "root", "cash-manager"]
ALL_ROLES = ["user", "cash-manager", "admin", "root"]

class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Not enough permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Obtener usuario actual desde el token"""

    # Verificar token
    payload = AuthService.verify_token(credentials.credentials)
    if payload is None:
        raise AuthenticationError("Token inválido o expirado")

    # Obtener user_id del payload
    user_id: int = payload.get("user_id")
    if user_id is None:
        raise AuthenticationError("Payload del token inválido")

    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        raise AuthenticationError("Usuario no encontrado")

    if not user.is_active:
        raise AuthenticationError("Usuario inactivo")

    return user

def require_roles(allowed_roles: List[str]):
    """Factory para crear dependency que requiere roles específicos"""
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Rol '{current_user.role}' no autorizado. Roles permitidos: {allowed_roles}"
            )
        return current_user
    return role_checker

async def get_current_organization_id(
    current_user: User = Depends(get_current_user),
    x_organization_id: Optional[int] = Header(None, alias="X-Organization-Id"),
    db: Session = Depends(get_db)
) -> int:
    """
    Organización (tenant) sobre la que opera el request.

    Los usuarios normales siempre operan sobre su propia organización;
    root puede elegir una con el header X-Organization-Id.
    """
    if current_user.role == PLATFORM_ROLE:
        if x_organization_id is None:
            raise AuthorizationError("Usuario sin organización asignada")
        organization = db.query(Organization).filter(Organization.id == x_organization_id).first()
        if not organization:
            raise HTTPException(status_code=404, detail="Organización no encontrada")
        return organization.id

    if current_user.organization_id is None:
        raise AuthorizationError("Usuario sin organización asignada")

    return current_user.organization_id

# Dependencies específicas por rol
def get_admin_user(current_user: User = Depends(require_roles(ADMIN_ROLES))):
    """Dependency para administradores"""
    return current_user

def get_root_user(current_user: User = Depends(require_roles([PLATFORM_ROLE]))):
    """Dependency para root (plataforma)"""
    return current_user

def can_manage_user(current_user: User, target_user: User) -> bool:
    """Verificar si usuario puede gestionar a otro usuario"""

    if current_user.role == PLATFORM_ROLE:
        return True

    # admin gestiona usuarios de su organización (excepto root)
    if current_user.role == "admin":
        return (
            target_user.organization_id == current_user.organization_id
            and target_user.role != PLATFORM_ROLE
        )

    return False
