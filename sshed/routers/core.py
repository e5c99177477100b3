from fastapi import APIRouter
from sshed.core.config import get_settings
from sshed.core.runtime import get_runtime

router = APIRouter()
settings = get_settings()


@router.get("/health")
def health() -> dict:
    """Liveness probe with the ssh config path currently in effect."""
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "ssh_config_path": str(get_runtime().ssh_config_path()),
    }
