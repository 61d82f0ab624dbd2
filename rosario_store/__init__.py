# ==============================================================================
# ROSARIO STORE - Gestión de tienda: catálogo, créditos, pedidos y listas
# ==============================================================================
# Punto de entrada del paquete. La app Flask se construye con create_app().
# ==============================================================================

__version__ = '1.0.0'
