from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.service import AuthService, PLATFORM_ROLE
from app.core.auth.schemas import UserLogin, TokenResponse, UserResponse
from app.shared.database.models import User
from app.core.auth.dependencies import get_current_user

router = APIRouter()


def build_user_response(user: User) -> UserResponse:
    """Armar UserResponse con datos de organización y sucursal"""
    organization_name = None
    organization_slug = None
    branch_name = None

    if user.role != PLATFORM_ROLE and user.organization:
        organization_name = user.organization.name
        organization_slug = user.organization.slug
    if user.branch:
        branch_name = user.branch.name

    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        organization_id=user.organization_id,
        organization_name=organization_name,
        organization_slug=organization_slug,
        branch_id=user.branch_id,
        branch_name=branch_name,
        is_active=user.is_active
    )


def _authenticate(db: Session, email: str, password: str) -> TokenResponse:
    user = db.query(User).filter(User.email == email).first()

    if not user or not AuthService.verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email o contraseña incorrectos",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Usuario inactivo"
        )

    if user.role != PLATFORM_ROLE and user.organization and not user.organization.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="La organización del usuario está inactiva"
        )

    access_token = AuthService.create_access_token(data=AuthService.token_data_for(user))

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user=build_user_response(user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Endpoint de login para obtener token de acceso

    **Parámetros:**
    - **username**: Email del usuario
    - **password**: Contraseña del usuario
    """
    return _authenticate(db, form_data.username, form_data.password)


@router.post("/login-json", response_model=TokenResponse)
async def login_json(
    user_login: UserLogin,
    db: Session = Depends(get_db)
):
    """Endpoint de login alternativo que acepta JSON"""
    return _authenticate(db, user_login.email, user_login.password)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Obtener información del usuario actual
    **Headers requeridos:**
    - Authorization: Bearer {token}
    """
    return build_user_response(current_user)


@router.post("/logout")
async def logout():
    """
    Logout (con JWT stateless, solo informativo)

    En el frontend debes eliminar el token del storage.
    """
    return {"message": "Logout exitoso. Elimina el token del cliente."}


@router.get("/check-permissions")
async def check_permissions(
    current_user: User = Depends(get_current_user)
):
    """Verificar permisos del usuario actual"""
    permissions = {
        "user": ["stock", "sales", "clients", "current_accounts"],
        "cash-manager": ["stock", "sales", "clients", "current_accounts", "petty_cash"],
        "admin": ["all_operations", "user_management", "configuration", "petty_cash_delete"],
        "root": ["global_administration", "all_organizations", "global_brands"]
    }

    return {
        "user": {
            "id": current_user.id,
            "email": current_user.email,
            "role": current_user.role,
            "full_name": current_user.full_name,
            "organization_id": current_user.organization_id
        },
        "permissions": permissions.get(current_user.role, []),
        "can_access": {
            "petty_cash": current_user.role in ["cash-manager", "admin", "root"],
            "configuration": current_user.role in ["admin", "root"],
            "reports": current_user.role in ["admin", "root"],
            "root_panel": current_user.role == PLATFORM_ROLE
        }
    }
