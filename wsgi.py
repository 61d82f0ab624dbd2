# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# Este archivo es el punto de entrada para servidores WSGI como Gunicorn.
#
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# COMANDOS DE CONSOLA:
#   flask --app wsgi create-account admin@rosario.store clave_segura
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/             <- Directorio de trabajo
#   ├── wsgi.py            <- Este archivo
#   ├── pyproject.toml
#   └── rosario_store/     <- Paquete Python
#       ├── main.py        <- create_app()
#       ├── services/
#       └── repositories/
# ==============================================================================

from rosario_store.main import create_app

app = create_app()

# ==============================================================================
# PUNTO DE ENTRADA
# ==============================================================================
# Para desarrollo local:
#   python wsgi.py
# ==============================================================================

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
