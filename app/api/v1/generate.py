import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.api.dependencies import get_generation_client, route_rate_limit
from app.core.config import settings
from app.schemas.resume import FormData, GenerateProxyResponse
from app.services.generation_client import GenerationClient, RequestTimeout, UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/generate",
    response_model=GenerateProxyResponse,
    dependencies=[Depends(route_rate_limit(settings.generation_rate_limit_per_minute))],
)
async def generate(payload: FormData, client: GenerationClient = Depends(get_generation_client)):
    try:
        generated = await client.generate(payload.to_payload())
    except RequestTimeout as exc:
        logger.error("generation_proxy_failed reason=timeout")
        return JSONResponse(status_code=status.HTTP_504_GATEWAY_TIMEOUT, content={"error": str(exc)})
    except UpstreamError as exc:
        logger.error("generation_proxy_failed reason=%s", exc.code)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})
    return GenerateProxyResponse(generated=generated)
