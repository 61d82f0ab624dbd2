# ==============================================================================
# REPOSITORIO DE CUENTAS (proveedor de identidad)
# ==============================================================================
# Credenciales de inicio de sesión, separadas de los clientes:
#   {"email": "ana@x.com", "password": "scrypt:..."}
# ==============================================================================

from typing import Optional

from rosario_store.repositories.interfaces import Document, IDocumentStore


class AccountRepository:
    """Repositorio de cuentas de acceso."""

    COLLECTION = 'accounts'

    def __init__(self, store: IDocumentStore):
        self.store = store

    def get_by_email(self, email: str) -> Optional[Document]:
        docs = self.store.query(self.COLLECTION, where=('email', email))
        return docs[0] if docs else None

    def create(self, email: str, password_hash: str) -> str:
        return self.store.insert(self.COLLECTION, {'email': email, 'password': password_hash})

    def update_password(self, account_id: str, password_hash: str) -> None:
        self.store.update(self.COLLECTION, account_id, {'password': password_hash})
