"""
Rate limiting por IP.
Solo la apertura de visitas lleva un límite explícito (RATE_LIMIT_VISITS).
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config import RATE_LIMIT_DEFAULT, REDIS_URL

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[RATE_LIMIT_DEFAULT],
    storage_uri=REDIS_URL,  # memory:// en desarrollo, redis:// en producción
    strategy="fixed-window"
)


def setup_rate_limiting(app):
    """Configurar rate limiting en la aplicación FastAPI"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    return limiter
