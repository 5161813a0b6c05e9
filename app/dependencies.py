from uuid import UUID

from fastapi import Header


async def current_user_id(
    x_user_id: UUID = Header(..., alias="X-User-Id", description="Acting user id")
) -> UUID:
    """Actor supplied by the identity/session provider in front of this service."""
    return x_user_id
