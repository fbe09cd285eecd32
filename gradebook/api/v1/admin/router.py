from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.schemas import AdminUserList, DeleteAllAccountsRequest, DeleteAllAccountsResponse
from gradebook.core.exceptions import ServiceError, to_http_exception
from gradebook.db.session import get_db

from . import service

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.get("/users", response_model=AdminUserList)
async def list_users(
    x_admin_password: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> AdminUserList:
    try:
        users = await service.list_users(db, x_admin_password)
    except ServiceError as e:
        raise to_http_exception(e)
    return AdminUserList(users=users)


@router.post("/delete-all-accounts", response_model=DeleteAllAccountsResponse)
async def delete_all_accounts(
    payload: DeleteAllAccountsRequest,
    db: AsyncSession = Depends(get_db),
) -> DeleteAllAccountsResponse:
    """Wipe every account and all grades, tasks, students and custom subjects."""
    try:
        deleted = await service.delete_all_accounts(db, payload.confirmationPassword)
    except ServiceError as e:
        raise to_http_exception(e)
    return DeleteAllAccountsResponse(
        message="Semua akun dan data terkait berhasil dihapus",
        deletedAccounts=deleted,
    )
