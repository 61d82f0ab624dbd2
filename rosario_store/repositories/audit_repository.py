# ==============================================================================
# REPOSITORIO DE AUDITORÍA
# ==============================================================================
# Encapsula todo el acceso a la colección "audit_log".
# ==============================================================================

from typing import Any, Dict, List, Optional

from rosario_store.models import AuditLog, AuditType
from rosario_store.repositories.interfaces import IDocumentStore
from rosario_store.utils import utcnow


class AuditRepository:
    """
    Repositorio para gestión del log de auditoría.

    Formato de cada documento:
        {
            "type": "PAGO",
            "user": "admin@rosario.store",
            "message": "Abono de $ 20.00 al pedido ...",
            "timestamp": {"$date": "2026-10-18T10:00:00+00:00"},
            "related_id": "aB3...",
            "details": {...}
        }
    """

    COLLECTION = 'audit_log'

    def __init__(self, store: IDocumentStore):
        self.store = store

    def log(
        self,
        log_type: AuditType,
        user: str,
        message: str,
        related_id: str = '',
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Registra un nuevo evento de auditoría.

        Args:
            log_type: Tipo de evento (CREDITO, PAGO, ABONO, CLIENTE, PRODUCTO, SISTEMA)
            user: Usuario que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (cliente, pedido, producto)
            details: Detalles adicionales
        """
        entry = AuditLog(
            type=log_type,
            user=user or 'sistema',
            message=message,
            timestamp=utcnow(),
            related_id=related_id,
            details=details or {},
        )
        self.store.insert(self.COLLECTION, entry.to_dict())

    def load(self) -> List[AuditLog]:
        """Todos los logs, más recientes primero."""
        docs = self.store.query(self.COLLECTION, order_by='timestamp', descending=True)
        return [AuditLog.from_dict(data) for _, data in docs]

    def search_logs(
        self,
        query: str = '',
        log_type: Optional[str] = None,
        user: Optional[str] = None,
    ) -> List[AuditLog]:
        """
        Búsqueda con filtros por tipo, usuario y texto libre.

        Returns:
            Lista de logs que coinciden (más recientes primero)
        """
        logs = self.load()

        if log_type:
            logs = [log for log in logs if log.type.value == log_type]

        if user:
            logs = [log for log in logs if log.user == user]

        if query:
            query_lower = query.lower()
            logs = [
                log for log in logs
                if any(query_lower in s.lower()
                       for s in (log.type.value, log.user, log.message, log.related_id) if s)
            ]

        return logs

    def get_recent_logs(self, limit: int = 100) -> List[AuditLog]:
        return self.load()[:limit]
