from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    # All four are required; presence is checked in the service so a missing field is a 400
    username: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = None
    name: Optional[str] = Field(None, max_length=255)
    class_id: Optional[int] = None


class RegisterResponse(BaseModel):
    message: str
    userId: int


class LoginRequest(BaseModel):
    username: str
    password: str


class UserInfo(BaseModel):
    id: int
    username: str
    name: str
    class_id: int

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class MeResponse(BaseModel):
    success: bool = True
    user: UserInfo


class ClassInfo(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class DeleteAccountRequest(BaseModel):
    password: Optional[str] = None


class DeleteAllAccountsRequest(BaseModel):
    confirmationPassword: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class DeleteAllAccountsResponse(BaseModel):
    message: str
    deletedAccounts: int


class AdminUserList(BaseModel):
    users: List[UserInfo]


class CurrentUser(BaseModel):
    """Request-scoped identity of the authenticated teacher; every query is scoped by class_id."""

    id: int
    username: str
    class_id: int
