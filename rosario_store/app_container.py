# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (cada test arma su contenedor sobre una carpeta temporal)
#   - Cambiar de backend sin tocar servicios
#
# CAMBIAR DE ALMACÉN
# Los servicios dependen de IDocumentStore / IBlobStore. Para usar otro
# backend basta con otra clase que cumpla el protocolo y cambiar las
# propiedades `store` y `blob_store` de este archivo.
# ==============================================================================

import os
from typing import Any, Mapping, Optional

from flask import current_app

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Capa de persistencia
# ═══════════════════════════════════════════════════════════════════════════════
from rosario_store.repositories import (
    AccountRepository,
    AuditRepository,
    ChecklistRepository,
    CreditRepository,
    CustomerRepository,
    JsonDocumentStore,
    LocalBlobStore,
    ProductRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from rosario_store.services import (
    AuditService,
    AuthService,
    ChecklistService,
    CustomerService,
    IdentityService,
    ImportService,
    LedgerService,
    OrderService,
    ProductService,
)

EXTENSION_KEY = 'rosario_container'


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Cada propiedad crea su instancia la primera vez que se pide
    (lazy loading) y la reutiliza después.

    Uso:
        container = AppContainer({'DATA_DIR': '/ruta/data', 'ADMIN_EMAIL': 'a@b.c'})
        ledger = container.ledger_service
    """

    def __init__(self, config: Mapping[str, Any]):
        """
        Args:
            config: app.config o cualquier mapping con DATA_DIR, ADMIN_EMAIL,
                    LEDGER_ATOMIC_WRITES y BLOB_URL_PREFIX
        """
        self._config = config
        self._data_dir = config['DATA_DIR']
        self.reset()

    def reset(self) -> None:
        """Descarta todas las instancias (útil para testing)."""
        # Almacenes
        self._store: Optional[JsonDocumentStore] = None
        self._blob_store: Optional[LocalBlobStore] = None

        # Repositorios
        self._customer_repo: Optional[CustomerRepository] = None
        self._credit_repo: Optional[CreditRepository] = None
        self._product_repo: Optional[ProductRepository] = None
        self._checklist_repo: Optional[ChecklistRepository] = None
        self._account_repo: Optional[AccountRepository] = None
        self._audit_repo: Optional[AuditRepository] = None

        # Servicios
        self._audit_service: Optional[AuditService] = None
        self._auth_service: Optional[AuthService] = None
        self._identity_service: Optional[IdentityService] = None
        self._customer_service: Optional[CustomerService] = None
        self._ledger_service: Optional[LedgerService] = None
        self._product_service: Optional[ProductService] = None
        self._import_service: Optional[ImportService] = None
        self._order_service: Optional[OrderService] = None
        self._checklist_service: Optional[ChecklistService] = None

    # =========================================================================
    # ALMACENES
    # =========================================================================

    @property
    def store(self) -> JsonDocumentStore:
        """Almacén de documentos."""
        if self._store is None:
            self._store = JsonDocumentStore(self._data_dir)
        return self._store

    @property
    def blob_store(self) -> LocalBlobStore:
        """Almacén de archivos (fotos de productos)."""
        if self._blob_store is None:
            self._blob_store = LocalBlobStore(
                os.path.join(self._data_dir, 'blobs'),
                self._config.get('BLOB_URL_PREFIX', '/media'),
            )
        return self._blob_store

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def customer_repo(self) -> CustomerRepository:
        if self._customer_repo is None:
            self._customer_repo = CustomerRepository(self.store)
        return self._customer_repo

    @property
    def credit_repo(self) -> CreditRepository:
        if self._credit_repo is None:
            self._credit_repo = CreditRepository(self.store)
        return self._credit_repo

    @property
    def product_repo(self) -> ProductRepository:
        if self._product_repo is None:
            self._product_repo = ProductRepository(self.store)
        return self._product_repo

    @property
    def checklist_repo(self) -> ChecklistRepository:
        if self._checklist_repo is None:
            self._checklist_repo = ChecklistRepository(self.store)
        return self._checklist_repo

    @property
    def account_repo(self) -> AccountRepository:
        if self._account_repo is None:
            self._account_repo = AccountRepository(self.store)
        return self._account_repo

    @property
    def audit_repo(self) -> AuditRepository:
        if self._audit_repo is None:
            self._audit_repo = AuditRepository(self.store)
        return self._audit_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def audit_service(self) -> AuditService:
        """Servicio de auditoría."""
        if self._audit_service is None:
            self._audit_service = AuditService(self.audit_repo)
        return self._audit_service

    @property
    def auth_service(self) -> AuthService:
        """Servicio de autenticación."""
        if self._auth_service is None:
            self._auth_service = AuthService(
                self.account_repo,
                self._config.get('ADMIN_EMAIL', ''),
                self.audit_service
            )
        return self._auth_service

    @property
    def identity_service(self) -> IdentityService:
        if self._identity_service is None:
            self._identity_service = IdentityService(self.customer_repo)
        return self._identity_service

    @property
    def customer_service(self) -> CustomerService:
        if self._customer_service is None:
            self._customer_service = CustomerService(
                self.customer_repo,
                self.credit_repo,
                self.identity_service,
                self.audit_service
            )
        return self._customer_service

    @property
    def ledger_service(self) -> LedgerService:
        """Libro de créditos (modo de escritura según LEDGER_ATOMIC_WRITES)."""
        if self._ledger_service is None:
            self._ledger_service = LedgerService(
                self.store,
                self.customer_repo,
                self.credit_repo,
                self.identity_service,
                self.audit_service,
                atomic_writes=bool(self._config.get('LEDGER_ATOMIC_WRITES', False))
            )
        return self._ledger_service

    @property
    def product_service(self) -> ProductService:
        if self._product_service is None:
            self._product_service = ProductService(
                self.product_repo,
                self.blob_store,
                self.audit_service
            )
        return self._product_service

    @property
    def import_service(self) -> ImportService:
        if self._import_service is None:
            self._import_service = ImportService(self.product_service, self.audit_service)
        return self._import_service

    @property
    def order_service(self) -> OrderService:
        if self._order_service is None:
            self._order_service = OrderService(self.credit_repo, self.identity_service)
        return self._order_service

    @property
    def checklist_service(self) -> ChecklistService:
        if self._checklist_service is None:
            self._checklist_service = ChecklistService(self.checklist_repo)
        return self._checklist_service


def get_container() -> AppContainer:
    """Contenedor de la app Flask activa (creado en create_app)."""
    return current_app.extensions[EXTENSION_KEY]
