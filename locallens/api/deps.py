from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from locallens.core.session import SessionRegistry
from locallens.core.settings import Settings

settings = Settings()

# Shared by every router and registered on app.state in main
limiter = Limiter(key_func=get_remote_address, enabled=settings.ENABLE_RATE_LIMITING)

READ_LIMIT = settings.RATE_LIMIT_READ
GENERATE_LIMIT = settings.RATE_LIMIT_GENERATE


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry
