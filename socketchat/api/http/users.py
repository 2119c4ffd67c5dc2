"""Roster endpoint: who is connected right now."""

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/users", summary="List connected users")
async def list_users(request: Request) -> dict[str, Any]:
    """
    Snapshot of the roster, in connection order.

    Example:
        ```
        {
            "success": true,
            "count": 1,
            "users": [
                {
                    "id": "3f6c...",
                    "username": "User_3f6c1a",
                    "connectedAt": "2026-10-19T10:00:00.000Z",
                    "lastSeen": "2026-10-19T10:02:13.512Z"
                }
            ]
        }
        ```
    """
    broadcast_router = request.app.state.broadcast_router
    roster = broadcast_router.roster()
    return {
        "success": True,
        "count": len(roster),
        "users": [
            entry.model_dump(mode="json", by_alias=True) for entry in roster
        ],
    }
