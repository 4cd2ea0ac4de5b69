"""
Configuración general del backend de limpieza
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Base de datos
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# JWT (emitido por el proveedor de identidad, acá solo se verifica)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "cambiar-en-produccion-clave-de-desarrollo")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Zona horaria de la propiedad (define el "hoy" de una visita nueva)
PROPERTY_TIMEZONE = os.getenv("PROPERTY_TIMEZONE", "America/Argentina/Buenos_Aires")

# CORS
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# Rate limiting
RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
REDIS_URL = os.getenv("REDIS_URL", "memory://")
RATE_LIMIT_VISITS = os.getenv("RATE_LIMIT_VISITS", "30/minute")
