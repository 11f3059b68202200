"""API dependencies."""

import logging
import secrets
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.auth.context import AuthContext
from eventdesk.config import Environment, settings
from eventdesk.db import base as db_base
from eventdesk.engine import EventDeskEngine, TabGate
from eventdesk.models import Actor


logger = logging.getLogger("eventdesk.api")

_tab_gate: TabGate | None = None


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with db_base.async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_engine(session: AsyncSession = Depends(get_db_session)) -> EventDeskEngine:
    return EventDeskEngine(session)


def get_tab_gate() -> TabGate:
    """Process-wide tab gate; debounce state must outlive a single request."""
    global _tab_gate
    if _tab_gate is None:
        _tab_gate = TabGate(debounce_seconds=settings.tab_lock_debounce_seconds)
    return _tab_gate


async def get_actor(
    x_actor_id: str | None = Header(None, alias="X-Actor-ID"),
    x_actor_name: str | None = Header(None, alias="X-Actor-Name"),
) -> Actor:
    """
    Identify the acting person.

    Authentication happens upstream; the gateway forwards the person id
    in the X-Actor-ID header.
    """
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Actor-ID header")
    return Actor(id=x_actor_id.strip(), display_name=x_actor_name)


async def verify_api_key(
    authorization: str | None = Header(None),
    x_api_key: str | None = Header(None, alias="X-API-Key"),
) -> AuthContext:
    """
    Verify the shared API key.

    Accepts ``Authorization: Bearer <key>`` or ``X-API-Key``. Fails closed:
    with no key configured, requests are rejected unless insecure dev mode
    is explicitly enabled.
    """
    # Insecure dev mode bypass (must be explicitly enabled)
    if settings.allow_insecure_dev and settings.env == Environment.DEVELOPMENT:
        return AuthContext(auth_type="insecure_dev")

    api_key = None
    if authorization and authorization.startswith("Bearer "):
        api_key = authorization[7:]
    elif x_api_key:
        api_key = x_api_key

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing authorization. Use Authorization: Bearer <key> or X-API-Key header"
        )

    if settings.api_key:
        if secrets.compare_digest(api_key, settings.api_key):
            return AuthContext(auth_type="api_key")
        raise HTTPException(status_code=401, detail="Invalid API key")

    logger.error("SECURITY VIOLATION: No API key configured. Set EVENTDESK_API_KEY.")
    raise HTTPException(
        status_code=503,
        detail="Server misconfigured: authentication not properly initialized",
    )


def validate_auth_config() -> None:
    """
    Validate authentication configuration at startup.

    Raises:
        RuntimeError: If configuration is insecure for the current environment
    """
    if settings.allow_insecure_dev and settings.env != Environment.DEVELOPMENT:
        raise RuntimeError(
            f"SECURITY ERROR: allow_insecure_dev=true is only permitted in development. "
            f"Current environment: {settings.env.value}."
        )

    if settings.allow_insecure_dev:
        logger.warning(
            "WARNING: Running in INSECURE DEV MODE - API key verification is DISABLED"
        )
    elif settings.api_key:
        logger.info(f"Authentication enabled: shared API key for {settings.env.value}")
    else:
        logger.warning(
            "No EVENTDESK_API_KEY configured; all API requests will be rejected"
        )
