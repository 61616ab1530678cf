"""
SupplyLedger API Dependencies

Dependency injection for DB sessions, caller identity and the registry
service.
"""

import asyncio
from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.clock import TickClock
from core.config import get_settings
from db.session import AsyncSessionLocal
from optimization.cycle import CyclePolicy, OptimizationCycleOrchestrator
from registry.service import SupplyChainRegistry
from registry.store import SqlRegistryStore

settings = get_settings()
security = HTTPBearer(auto_error=not settings.debug)

# One lock per process: every registry mutation is serialized through it.
registry_lock = asyncio.Lock()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Decode JWT and return the caller payload. Bypassed in debug mode."""
    if settings.debug:
        return {"sub": settings.dev_principal}

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    from core.security import decode_access_token

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return payload


@lru_cache
def get_orchestrator() -> OptimizationCycleOrchestrator:
    """Process-wide orchestrator; its IDLE/RUNNING state is shared."""
    return OptimizationCycleOrchestrator(CyclePolicy.from_settings(get_settings()))


def get_clock() -> TickClock:
    return TickClock(get_settings().tick_seconds)


def get_registry_lock() -> asyncio.Lock:
    return registry_lock


async def get_registry(
    db: AsyncSession = Depends(get_db),
    orchestrator: OptimizationCycleOrchestrator = Depends(get_orchestrator),
    clock=Depends(get_clock),
    lock: asyncio.Lock = Depends(get_registry_lock),
) -> SupplyChainRegistry:
    return SupplyChainRegistry(
        SqlRegistryStore(db),
        settings=get_settings(),
        clock=clock,
        lock=lock,
        orchestrator=orchestrator,
    )
