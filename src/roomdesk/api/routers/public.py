"""Aggregate router for every public route."""

from fastapi import APIRouter

from roomdesk.api.routes import auth, rooms

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(auth.router)
router.include_router(rooms.router)
