# app/shared/services/otp_service.py
import logging
from typing import Optional

import pyotp

from app.config.settings import settings

logger = logging.getLogger(__name__)


class OTPService:
    """TOTP para el modo seguro de la organización (compatible con Google Authenticator)"""

    @staticmethod
    def generate_secret() -> str:
        return pyotp.random_base32()

    @staticmethod
    def _totp(secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(
            secret,
            digits=settings.otp_digits,
            interval=settings.otp_interval,
            issuer=settings.otp_issuer,
        )

    @classmethod
    def provisioning_uri(cls, secret: str, account_name: str) -> str:
        """URL otpauth:// para generar el QR en la app autenticadora"""
        return cls._totp(secret).provisioning_uri(name=account_name, issuer_name=settings.otp_issuer)

    @classmethod
    def current_token(cls, secret: str) -> str:
        return cls._totp(secret).now()

    @classmethod
    def verify(cls, secret: Optional[str], token: Optional[str]) -> bool:
        """Verificar token con ventana de ±valid_window pasos"""
        if not secret or not token:
            return False
        token = token.strip()
        if not token.isdigit() or len(token) != settings.otp_digits:
            return False
        is_valid = cls._totp(secret).verify(token, valid_window=settings.otp_valid_window)
        if not is_valid:
            logger.warning("⚠️ Código OTP inválido")
        return is_valid
