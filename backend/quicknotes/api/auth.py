from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from quicknotes.api.deps import get_settings, get_users_store
from quicknotes.core.config import Settings
from quicknotes.models.auth import MeResponse, SignInRequest, SignUpRequest, SignUpResponse, TokenResponse
from quicknotes.storage.users_store import UsersStore
from quicknotes.utils.auth_hash import hash_password, verify_password
from quicknotes.utils.jwt_auth import create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])
log = logging.getLogger("quicknotes.auth")


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=SignUpResponse)
def sign_up(req: SignUpRequest, request: Request, users: UsersStore = Depends(get_users_store)) -> SignUpResponse:
    if users.get(req.username) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")

    hpw = hash_password(request.app.state.pwd_context, req.password)  # never store plaintext
    try:
        rec = users.create(req.username, hpw)
    except FileExistsError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")
    log.info("account created user_id=%s", rec.user_id)
    return SignUpResponse(user_id=rec.user_id, username=rec.username)


@router.post("/login", response_model=TokenResponse)
def sign_in(
    req: SignInRequest,
    request: Request,
    users: UsersStore = Depends(get_users_store),
    settings: Settings = Depends(get_settings),
) -> TokenResponse:
    try:
        rec = users.get(req.username)
    except ValueError:
        rec = None
    if rec is None or not verify_password(request.app.state.pwd_context, req.password, rec.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(settings, subject=rec.user_id)
    return TokenResponse(access_token=token, user_id=rec.user_id)


@router.get("/me", response_model=MeResponse)
def me(user_id: str = Depends(get_current_user), users: UsersStore = Depends(get_users_store)) -> MeResponse:
    rec = users.get_by_id(user_id)
    return MeResponse(user_id=user_id, username=rec.username if rec is not None else None)
