"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

if TYPE_CHECKING:
    from photo_print_store.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/payments", dependencies=[Depends(require_admin)])
async def payment_history(
    request: Request,
    limit: int = Query(default=10, ge=1, le=100),
    starting_after: str | None = None,
) -> dict[str, object]:
    """Return recent checkout sessions, newest first."""
    container: AppContainer = request.app.state.container
    page = await container.payment_service.payment_history(
        limit=limit, starting_after=starting_after
    )
    return {
        "sessions": [session.to_dict() for session in page.sessions],
        "has_more": page.has_more,
    }
