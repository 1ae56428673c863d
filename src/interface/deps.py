"""Shared FastAPI dependencies."""

import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from src.core.config import Constants
from src.services.presence_registry import PresenceRegistry


logger = logging.getLogger(__name__)


async def get_actor_id(
    request: Request,
    x_user_id: Annotated[str | None, Header(alias=Constants.ACTOR_HEADER)] = None,
) -> str:
    """Return the authenticated actor ID set by the upstream gateway."""
    if not x_user_id or not x_user_id.strip():
        logger.warning("actor_header_missing", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No authenticated user")
    return x_user_id.strip()


def get_presence_registry(request: Request) -> PresenceRegistry:
    """Return the process-wide presence registry created at startup."""
    return request.app.state.presence_registry


ActorId = Annotated[str, Depends(get_actor_id)]
Presence = Annotated[PresenceRegistry, Depends(get_presence_registry)]
