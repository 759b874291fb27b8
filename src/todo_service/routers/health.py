from __future__ import annotations

from fastapi import APIRouter, Request

from ..schemas import HealthOut

router = APIRouter(tags=["health"])


def health(request: Request) -> HealthOut:
    """
    Report service health. The response is always 200; ``db`` tells whether
    the storage backend answered a ping.
    """
    repo = request.app.state.repository
    return HealthOut(status="ok", db="up" if repo.ping() else "down")


router.add_api_route("/health", health, methods=["GET"], summary="Health Check", response_model=HealthOut)
