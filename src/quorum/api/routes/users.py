"""Users API endpoint.

POST /api/users - Register a respondent
GET /api/users/{user_id} - Get respondent detail
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from quorum.api.app import get_db_session, to_http_exception
from quorum.core.errors import QuorumError
from quorum.db import repo
from quorum.db.repo import DbSession
from quorum.models.domain import UserEntity
from quorum.models.types import UserCreate, UserDetail
from quorum.surveys.answers import register_user

router = APIRouter()


def _user_to_detail(user: UserEntity) -> UserDetail:
    return UserDetail(
        user_id=user.user_id,
        email=user.email,
        gender=user.gender.value,
        birthdate=user.birthdate,
    )


@router.post("/users", response_model=UserDetail, status_code=201)
def create_user(
    payload: UserCreate,
    session: DbSession = Depends(get_db_session),
) -> UserDetail:
    """Register a respondent.

    Raises:
        HTTPException: 400 if the email is taken or the birthdate is out of range.
    """
    try:
        user = register_user(session, payload)
    except QuorumError as e:
        raise to_http_exception(e) from e
    return _user_to_detail(user)


@router.get("/users/{user_id}", response_model=UserDetail)
def get_user(
    user_id: str,
    session: DbSession = Depends(get_db_session),
) -> UserDetail:
    """Get respondent details.

    Raises:
        HTTPException: 404 if user not found.
    """
    user = repo.get_user(session, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return _user_to_detail(user)
