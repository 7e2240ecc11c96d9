from fastapi import APIRouter, Depends

from spine_studio.dependencies import get_reference_pool
from spine_studio.schemas.references import SystemImage

router = APIRouter(prefix="/api/v1/references", tags=["references"])


@router.get("", response_model=list[SystemImage])
async def list_references(pool: tuple[SystemImage, ...] = Depends(get_reference_pool)):
    return list(pool)
