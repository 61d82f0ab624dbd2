# ==============================================================================
# EXCEPCIONES DEL DOMINIO
# ==============================================================================
# Taxonomía de errores compartida por repositorios, servicios y rutas.
# Cada error lleva su código HTTP para que la capa de rutas lo convierta
# en una respuesta {"ok": False, "error": ...} sin lógica adicional.
# ==============================================================================


class RosarioError(Exception):
    """Error base de la aplicación."""

    status_code = 400

    def __init__(self, message: str = ''):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(RosarioError):
    """Entrada mal formada o faltante (se muestra en línea)."""
    status_code = 400


class NotAuthenticated(RosarioError):
    """No hay sesión o las credenciales son incorrectas."""
    status_code = 401


class NotFound(RosarioError):
    """El registro solicitado no existe."""
    status_code = 404


class AmbiguousIdentity(RosarioError):
    """Más de un cliente comparte el correo del usuario autenticado."""
    status_code = 409


class LimitExceeded(RosarioError):
    """El pedido supera el límite de crédito del cliente."""
    status_code = 422


class RemoteOperationFailed(RosarioError):
    """Falló una operación contra el almacén de documentos o de archivos."""
    status_code = 502
