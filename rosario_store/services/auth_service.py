# ==============================================================================
# SERVICIO DE AUTENTICACIÓN
# ==============================================================================
# Proveedor de identidad local: cuentas con correo + hash de contraseña.
# Solo responde "quién es"; qué cliente corresponde a ese correo lo decide
# IdentityService.
# ==============================================================================

import logging
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from rosario_store.exceptions import NotAuthenticated, ValidationError
from rosario_store.models import Principal
from rosario_store.repositories.account_repository import AccountRepository
from rosario_store.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class AuthService:
    """
    Servicio de autenticación.

    Responsabilidades:
    - Verificar credenciales (sign_in)
    - Registrar cuentas (comando create-account)
    - Decidir si un principal es administrador
    """

    MIN_PASSWORD_LENGTH = 6

    def __init__(
        self,
        account_repo: AccountRepository,
        admin_email: str,
        audit_service: Optional[AuditService] = None
    ):
        """
        Args:
            account_repo: Repositorio de cuentas
            admin_email: Correo que habilita las pantallas de administración
            audit_service: Servicio de auditoría (opcional)
        """
        self.account_repo = account_repo
        self.admin_email = (admin_email or '').strip().lower()
        self.audit_service = audit_service

    def sign_in(self, email: str, password: str) -> Principal:
        """
        Verifica credenciales.

        Raises:
            NotAuthenticated: Si el correo no existe o la contraseña no coincide
        """
        email = (email or '').strip().lower()
        account = self.account_repo.get_by_email(email) if email else None
        if account is None or not check_password_hash(account[1].get('password', ''), password or ''):
            logger.info("Intento de inicio de sesión fallido para %s", email or '<vacío>')
            raise NotAuthenticated("Credenciales incorrectas")

        if self.audit_service:
            self.audit_service.log_user_login(email)
        return Principal(email)

    def sign_out(self, principal: Optional[Principal]) -> None:
        if principal and self.audit_service:
            self.audit_service.log_user_logout(principal.normalized_email)

    def register_account(self, email: str, password: str) -> Principal:
        """
        Crea una cuenta o reemplaza la contraseña si el correo ya existe.

        Raises:
            ValidationError: Correo vacío o contraseña corta
        """
        email = (email or '').strip().lower()
        if not email or '@' not in email:
            raise ValidationError("Correo inválido")
        if len(password or '') < self.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"La contraseña debe tener al menos {self.MIN_PASSWORD_LENGTH} caracteres")

        password_hash = generate_password_hash(password)
        existing = self.account_repo.get_by_email(email)
        if existing is None:
            self.account_repo.create(email, password_hash)
        else:
            self.account_repo.update_password(existing[0], password_hash)
        return Principal(email)

    def is_admin(self, principal: Optional[Principal]) -> bool:
        return bool(principal) and principal.normalized_email == self.admin_email
