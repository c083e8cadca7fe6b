# app/modules/configuration/security.py
import logging
from typing import Optional
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.shared.database.models import Organization
from app.shared.services.otp_service import OTPService
from .schemas import SecuritySettingsResponse

logger = logging.getLogger(__name__)


class SecurityService:
    """Modo seguro: operaciones sensibles protegidas con OTP"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def _organization(self) -> Organization:
        organization = self.db.query(Organization).filter(Organization.id == self.organization_id).first()
        if not organization:
            raise HTTPException(status_code=404, detail="Organización no encontrada")
        return organization

    async def get_settings(self) -> SecuritySettingsResponse:
        organization = self._organization()
        return SecuritySettingsResponse(
            success=True,
            secure_mode_enabled=organization.secure_mode_enabled,
            otp_verified=organization.otp_verified
        )

    async def toggle_secure_mode(self, enabled: bool) -> SecuritySettingsResponse:
        """
        Activar/desactivar el modo seguro.

        Al activar se genera un secreto nuevo y la URL otpauth:// para el QR;
        el OTP queda sin verificar hasta que el usuario confirme un código.
        """
        organization = self._organization()

        if enabled:
            secret = OTPService.generate_secret()
            organization.secure_mode_enabled = True
            organization.otp_secret = secret
            organization.otp_verified = False
            self.db.commit()
            logger.info(f"🔐 Modo seguro activado para org {organization.id}")
            return SecuritySettingsResponse(
                success=True,
                message="Modo seguro activado. Escanea el código QR y verifica un código.",
                secure_mode_enabled=True,
                otp_verified=False,
                otp_auth_url=OTPService.provisioning_uri(secret, organization.name),
                otp_secret=secret
            )

        organization.secure_mode_enabled = False
        organization.otp_secret = None
        organization.otp_verified = False
        self.db.commit()
        logger.info(f"🔓 Modo seguro desactivado para org {organization.id}")
        return SecuritySettingsResponse(
            success=True,
            message="Modo seguro desactivado",
            secure_mode_enabled=False,
            otp_verified=False
        )

    async def verify_otp_setup(self, token: str) -> SecuritySettingsResponse:
        organization = self._organization()
        if not organization.secure_mode_enabled or not organization.otp_secret:
            raise HTTPException(status_code=400, detail="El modo seguro no está activado")

        if not OTPService.verify(organization.otp_secret, token):
            raise HTTPException(status_code=400, detail="Código OTP inválido")

        organization.otp_verified = True
        self.db.commit()
        return SecuritySettingsResponse(
            success=True,
            message="OTP verificado correctamente",
            secure_mode_enabled=True,
            otp_verified=True
        )

    def ensure_operation_allowed(self, otp_token: Optional[str]) -> None:
        """
        Validar una operación sensible.

        Sin modo seguro no exige nada. Con modo seguro exige OTP configurado
        y verificado, y un código válido.
        """
        organization = self._organization()
        if not organization.secure_mode_enabled:
            return

        if not organization.otp_secret or not organization.otp_verified:
            raise HTTPException(
                status_code=403,
                detail="El modo seguro está activo pero el OTP no fue verificado"
            )
        if not otp_token:
            raise HTTPException(status_code=403, detail="Se requiere código OTP para esta operación")
        if not OTPService.verify(organization.otp_secret, otp_token):
            raise HTTPException(status_code=403, detail="Código OTP inválido")
