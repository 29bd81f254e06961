from fastapi import APIRouter

from app.configs import configs

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@router.get("/version", response_model=dict[str, str])
async def get_system_version() -> dict[str, str]:
    """Return the backend version."""
    return {"version": configs.Version}
