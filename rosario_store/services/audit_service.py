# ==============================================================================
# SERVICIO DE AUDITORÍA
# ==============================================================================
# Centraliza toda la lógica de registro de auditoría.
# Formatea mensajes humanizados y categoriza eventos.
# ==============================================================================

from typing import Any, Dict, List, Optional

from rosario_store.models import AuditLog, AuditType
from rosario_store.repositories.audit_repository import AuditRepository


class AuditService:
    """
    Servicio para registro y consulta de auditoría.

    Centraliza:
    - Registro de eventos con mensajes humanizados
    - Búsqueda y filtrado de logs

    La regla de oro: si entra o sale dinero del libro de créditos,
    siempre queda un log (CREDITO, PAGO o ABONO).
    """

    def __init__(self, audit_repo: AuditRepository):
        self.audit_repo = audit_repo

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: AuditType,
        user: str,
        message: str,
        related_id: str = '',
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Registra un evento de auditoría genérico."""
        self.audit_repo.log(log_type, user, message, related_id, details)

    def log_credit_assigned(
        self,
        user: str,
        customer_name: str,
        order_id: str,
        amount: float,
        debt_after: float
    ) -> None:
        """
        Registra un pedido a crédito asignado.

        Args:
            user: Administrador que asignó
            customer_name: Nombre del cliente
            order_id: ID del pedido creado
            amount: Monto del pedido
            debt_after: Deuda del cliente después de asignar
        """
        message = (f"Crédito de $ {amount:.2f} asignado a {customer_name} por {user}"
                   f" - Deuda: $ {debt_after:.2f}")
        self.log(
            AuditType.CREDITO,
            user,
            message,
            order_id,
            {'amount': amount, 'debt_after': debt_after}
        )

    def log_payment(
        self,
        user: str,
        order_id: str,
        amount: float,
        outstanding_after: float
    ) -> None:
        """
        Registra un abono a un pedido.
        REGLA DE ORO: si entra dinero, siempre se debe llamar esta función.
        """
        message = f"Pago recibido en pedido {order_id}: $ {amount:.2f} - Registrado por {user}"
        if outstanding_after <= 0:
            message += " - PAGADO COMPLETO"
        else:
            message += f" - Pendiente: $ {outstanding_after:.2f}"

        self.log(
            AuditType.PAGO,
            user,
            message,
            order_id,
            {'amount': amount, 'outstanding_after': outstanding_after}
        )

    def log_rebate(
        self,
        user: str,
        customer_id: str,
        customer_name: str,
        amount: float,
        debt_after: float
    ) -> None:
        """Registra un abono general (no ligado a un pedido)."""
        message = (f"Abono general de $ {amount:.2f} a {customer_name} por {user}"
                   f" - Deuda: $ {debt_after:.2f}")
        self.log(
            AuditType.ABONO,
            user,
            message,
            customer_id,
            {'amount': amount, 'debt_after': debt_after}
        )

    def log_customer_created(self, user: str, customer_id: str, name: str, credit_limit: float) -> None:
        message = f"Cliente creado: {name} (límite $ {credit_limit:.2f}) por {user}"
        self.log(AuditType.CLIENTE, user, message, customer_id, {'credit_limit': credit_limit})

    def log_customer_deleted(self, user: str, customer_id: str, name: str, orders_removed: int) -> None:
        message = f"Cliente eliminado: {name} ({orders_removed} pedidos) por {user}"
        self.log(AuditType.CLIENTE, user, message, customer_id, {'orders_removed': orders_removed})

    def log_product_created(self, user: str, product_id: str, codigo: str, name: str) -> None:
        message = f"Producto creado: {name} (Código: {codigo}) por {user}"
        self.log(AuditType.PRODUCTO, user, message, product_id, {'codigo': codigo})

    def log_product_updated(
        self,
        user: str,
        product_id: str,
        codigo: str,
        name: str,
        changes: Optional[Dict[str, Any]] = None
    ) -> None:
        message = f"Producto actualizado: {name} (Código: {codigo}) por {user}"
        self.log(AuditType.PRODUCTO, user, message, product_id, {'changes': changes})

    def log_product_deleted(self, user: str, product_id: str, codigo: str, name: str) -> None:
        message = f"Producto eliminado: {name} (Código: {codigo}) por {user}"
        self.log(AuditType.PRODUCTO, user, message, product_id, {'codigo': codigo})

    def log_import(self, user: str, filename: str, success: int, errors: int) -> None:
        message = f"Carga de {filename}: {success} productos agregados, {errors} errores - Por {user}"
        self.log(AuditType.PRODUCTO, user, message, details={'success': success, 'errors': errors})

    def log_user_login(self, user: str) -> None:
        """Registra un inicio de sesión."""
        self.log(AuditType.SISTEMA, user, f"Inicio de sesión: {user}")

    def log_user_logout(self, user: str) -> None:
        """Registra un cierre de sesión."""
        self.log(AuditType.SISTEMA, user, f"Cierre de sesión: {user}")

    # =========================================================================
    # CONSULTA DE LOGS
    # =========================================================================

    def get_recent_logs(self, limit: int = 100) -> List[AuditLog]:
        """Obtiene los logs más recientes."""
        return self.audit_repo.get_recent_logs(limit)

    def search_logs(
        self,
        query: str = '',
        log_type: Optional[str] = None,
        user: Optional[str] = None,
    ) -> List[AuditLog]:
        """Búsqueda avanzada de logs."""
        return self.audit_repo.search_logs(query, log_type, user)
