import asyncio
from typing import Dict

from fastapi import APIRouter

from judge.dependencies import OptionalExecutor

router = APIRouter()


@router.get("/health")
async def health(executor: OptionalExecutor) -> Dict[str, str]:
    if executor is None:
        return {"status": "starting", "interpreter": "unknown", "isolation": "unknown"}

    # docker isolation inspects the image through the CLI
    available = await asyncio.to_thread(executor.is_available)
    return {
        "status": "ok",
        "interpreter": "available" if available else "unavailable",
        "isolation": executor.settings.isolation,
    }
