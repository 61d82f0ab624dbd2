# ==============================================================================
# CONTEXTO DE IDENTIDAD
# ==============================================================================
# Traduce el usuario autenticado al cliente que le corresponde.
#
#   0 clientes con ese correo  -> NotFound
#   1 cliente                  -> (id, Customer)
#   2 o más                    -> AmbiguousIdentity
#
# Perfil, lista de pedidos y estado de cuenta usan esta única función,
# así que la política es la misma en todas las pantallas.
# ==============================================================================

import logging
from typing import Optional, Tuple

from rosario_store.exceptions import AmbiguousIdentity, NotAuthenticated, NotFound
from rosario_store.models import Customer, Principal
from rosario_store.repositories.customer_repository import CustomerRepository

logger = logging.getLogger(__name__)


class IdentityService:
    """Resolución principal -> cliente."""

    def __init__(self, customer_repo: CustomerRepository):
        self.customer_repo = customer_repo

    def resolve(self, principal: Optional[Principal]) -> Tuple[str, Customer]:
        """
        Busca el único cliente cuyo correo coincide con el principal.

        Raises:
            NotAuthenticated: Sin principal o sin correo
            NotFound: Ningún cliente con ese correo
            AmbiguousIdentity: Más de un cliente con ese correo
        """
        if principal is None or not principal.email:
            raise NotAuthenticated("Usuario no autenticado.")

        matches = self.customer_repo.find_by_email(principal.normalized_email)
        if not matches:
            raise NotFound("No se encontró un cliente asociado a este usuario.")
        if len(matches) > 1:
            logger.warning("Correo %s asociado a %d clientes", principal.normalized_email, len(matches))
            raise AmbiguousIdentity(
                "Hay más de un cliente con este correo. Contacta al administrador.")

        customer = matches[0]
        return customer.id, customer
