import asyncio

from fastapi import APIRouter, Depends

from app.api.dependencies import get_field_history
from app.schemas.resume import FieldHistoryRecordRequest, FieldHistoryResponse
from app.services.field_history import FieldHistoryStore

router = APIRouter()


@router.get("/history", response_model=FieldHistoryResponse)
async def get_history(history: FieldHistoryStore = Depends(get_field_history)):
    return FieldHistoryResponse(history=await asyncio.to_thread(history.load))


@router.post("/history", response_model=FieldHistoryResponse)
async def record_history(payload: FieldHistoryRecordRequest, history: FieldHistoryStore = Depends(get_field_history)):
    updated = await asyncio.to_thread(history.record, payload.field, payload.value)
    return FieldHistoryResponse(history=updated)
