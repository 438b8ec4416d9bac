from fastapi import APIRouter, Depends

from genstream.api.deps import get_gateway
from genstream.services.gateway import GenerationGateway

router = APIRouter(tags=["providers"])


@router.get("/providers")
def list_providers(gateway: GenerationGateway = Depends(get_gateway)) -> dict:
    return {
        "providers": [
            {"id": provider_id, "dialect": adapter.kind.value, "default_base_url": adapter.default_base_url}
            for provider_id, adapter in gateway.registry.items()
        ]
    }
