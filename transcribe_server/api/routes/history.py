"""
Transcript history endpoints.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from transcribe_server.core.errors import StoreError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/history")
def list_history(request: Request):
    """All transcripts, most recent first."""
    gateway = request.app.state.gateway
    try:
        records = gateway.list_history()
    except StoreError as e:
        logger.error(f"Failed to fetch history: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch history"})

    items: List[Dict[str, Any]] = [record.to_dict() for record in records]
    return items


@router.delete("/history/{record_id}")
def delete_history_item(record_id: str, request: Request):
    """Delete a transcript. Unknown ids succeed without changing anything."""
    gateway = request.app.state.gateway
    try:
        gateway.delete_history(record_id)
    except StoreError as e:
        logger.error(f"Failed to delete {record_id}: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to delete item"})

    return {"message": "Deleted successfully"}
