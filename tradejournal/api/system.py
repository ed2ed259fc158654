"""System API: health check and engine settings."""

from fastapi import APIRouter

from tradejournal import __version__
from tradejournal.config import settings
from tradejournal.utils.constants import QUANTITY_EPSILON

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok", "version": __version__}


@router.get("/engine")
def engine_settings():
    """How writes are recomputed, so clients know whether arrival order matters."""
    return {
        "recompute_mode": "replay" if settings.replay_on_write else "incremental",
        "quantity_epsilon": QUANTITY_EPSILON,
    }
