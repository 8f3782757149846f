#  Site Server - Default API Routes
#
#  Minimal router mounted under the API prefix when no other router is
#  supplied: a health check and a body echo for checking parsers.
#
#  Depends on: container.py, lifecycle.py, models/schemas.py
#  Used by:    app.py

from dependency_injector.wiring import inject, Provide
from fastapi import APIRouter, Depends, Request

from siteserver.container import Container
from siteserver.lifecycle import LifecycleManager
from siteserver.models.schemas import HealthOut

router = APIRouter(tags=["api"])


@router.get("/health")
@inject
async def health(
    lifecycle: LifecycleManager = Depends(Provide[Container.lifecycle]),
) -> HealthOut:
    return HealthOut(status="ok", phase=lifecycle.phase.value)


@router.post("/echo")
async def echo(request: Request) -> dict:
    """Return the body as parsed by the body-parsing middleware."""
    return {"body": getattr(request.state, "body", None)}
