from fastapi import APIRouter, Depends, HTTPException, Request
import logging

logger = logging.getLogger(__name__)

from ..portal.context import AppContext
from ..portal.errors import ConfigurationError, NotFoundError
from ..portal.routes import get_context
from ..portal.shell import Shell
from .models import Invitation
from . import config

router = APIRouter(prefix="/api")


# ==============================================================================
# RUNTIME CONFIGURATION (Feature: environment-resolver)
# ==============================================================================

@router.get("/config")
async def get_config(context: AppContext = Depends(get_context)):
    """Runtime configuration as resolved by the config ladder, API key masked."""
    try:
        runtime = await context.env.load_config()
    except ConfigurationError as e:
        raise HTTPException(503, {"message": str(e), "attempts": e.attempts})
    return runtime.safe_dict()


@router.post("/config/reload")
async def reload_config(context: AppContext = Depends(get_context)):
    """Drop the cached configuration and run the whole ladder again."""
    try:
        runtime = await context.env.reload()
    except ConfigurationError as e:
        logger.error(f"Configuration reload failed: {e}")
        raise HTTPException(503, {"message": str(e), "attempts": e.attempts})
    return runtime.safe_dict()


# ==============================================================================
# INVITATIONS & SESSION
# ==============================================================================

@router.get("/invitations/{token}", response_model=Invitation)
async def get_invitation(token: str, context: AppContext = Depends(get_context)):
    try:
        return await context.db.get_invitation(token)
    except NotFoundError as e:
        raise HTTPException(404, str(e))


@router.get("/session")
async def get_session(request: Request, context: AppContext = Depends(get_context)):
    """Session of the calling browser client, if any."""
    client_id = request.cookies.get(config.CLIENT_COOKIE_NAME)
    if not client_id:
        return {"authenticated": False, "user": None}
    user = Shell(context, context.storage_for(client_id)).auth.current_user()
    return {
        "authenticated": user is not None,
        "user": user.model_dump(mode="json") if user else None,
    }
