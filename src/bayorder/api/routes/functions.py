from __future__ import annotations

from fastapi import APIRouter, Depends

from bayorder.api.deps import get_store, optional_identity
from bayorder.application.dto.requests import PurgeOldDataRequest
from bayorder.application.dto.responses import PurgeOldDataResponse
from bayorder.application.ports.identity import Identity
from bayorder.application.use_cases.purge_old_data import PurgeOldData

router = APIRouter(prefix="/v1/functions", tags=["functions"])


@router.post("/purgeOldData", response_model=PurgeOldDataResponse)
def purge_old_data(
    request_dto: PurgeOldDataRequest,
    identity: Identity | None = Depends(optional_identity),
) -> PurgeOldDataResponse:
    result = PurgeOldData(get_store()).execute(identity, request_dto.cafe_id, request_dto.days_to_keep)
    return PurgeOldDataResponse(success=result.success, deletedCount=result.deleted_count)
