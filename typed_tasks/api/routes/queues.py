"""
Queue handler routes.
"""

from fastapi import APIRouter, HTTPException, Request, status

from typed_tasks.types.api import HandlerDeployment

router = APIRouter(prefix="/queues", tags=["Queues"])


@router.get(
    "",
    response_model=list[HandlerDeployment],
    summary="List handlers",
    description="Report the region and merged options of every handler served by this app.",
)
async def list_handlers(request: Request) -> list[HandlerDeployment]:
    return list(request.app.state.deployments.values())


@router.get(
    "/{queue_name}",
    response_model=HandlerDeployment,
    summary="Get handler",
)
async def get_handler(queue_name: str, request: Request) -> HandlerDeployment:
    deployment = request.app.state.deployments.get(queue_name)
    if deployment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No handler for queue {queue_name}",
        )
    return deployment
