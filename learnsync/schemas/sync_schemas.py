"""
Import/sync response schemas
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Union


class SyncResponse(BaseModel):
    """Standard import response"""
    success: bool
    data: Union[Dict[str, Any], List[Dict[str, Any]]]

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "data": {
                    "phase": "users",
                    "provider_platform_id": "ckx1y2z3a0000abcd1234efgh",
                    "received": 3,
                    "created": 2,
                    "updated": 0,
                    "skipped": 0,
                    "failed": 1,
                    "unmapped": 0,
                    "cancelled": False,
                    "failures": [{"external_id": "42", "reason": "Failed to create user."}]
                }
            }
        }
