from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from ..core.dependencies import get_command_handler
from ..models import MalformedResponse
from ..services import CommandHandler, encode_response


router = APIRouter(prefix="/commands", tags=["commands"])

@router.post("", response_class=Response)
async def execute_command(
    request: Request,
    handler: CommandHandler = Depends(get_command_handler),
) -> Response:
    body = await request.body()
    response = await run_in_threadpool(handler.execute, body)
    status_code = (
        status.HTTP_400_BAD_REQUEST
        if isinstance(response, MalformedResponse)
        else status.HTTP_200_OK
    )
    return Response(
        content=encode_response(response),
        status_code=status_code,
        media_type="application/json",
    )

__all__ = ["router"]
