"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel


class CallerSession(BaseModel):
    """
    Resolved caller identity for an authenticated request.
    
    Returned by the get_caller dependency and passed explicitly
    into every service call that needs to know who is acting.
    """
    pubkey: str
    user_id: UUID
    username: str
    is_super_admin: bool = False
