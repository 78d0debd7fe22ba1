# ============================================================================
# apps/system/schemas.py - Status and health responses
# ============================================================================

from pydantic import BaseModel
from typing import Optional, Dict, Any, List


class StatusResponse(BaseModel):
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


class SystemHealth(BaseModel):
    status: str
    database_status: str
    version: str
    queue_classes: List[str]
    display_subscribers: int
    pending_print_jobs: int
