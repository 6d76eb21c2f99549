"""
Auth API Endpoints

Registration, login, logout, and the caller's own profile.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response, status
from pydantic import TypeAdapter

from therapease.api.deps import client_ip, get_account_service, get_current_account
from therapease.api.envelope import Envelope
from therapease.config import COOKIE_NAME, COOKIE_SECURE, JWT_EXPIRE_MINUTES
from therapease.models.account import AccountRead, AuthSession, CurrentAccount, LoginRequest, ProfileUpdate, Registration

router = APIRouter(prefix="/auth", tags=["auth"])

_registration = TypeAdapter(Registration)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=JWT_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=Envelope[AuthSession])
def register(response: Response, payload: dict[str, Any] = Body(...)) -> Envelope[AuthSession]:
    """
    Create a user or therapist account.

    Therapist registrations also open a pending therapist profile.
    """
    data = _registration.validate_python(payload)
    session = get_account_service().register(data)
    _set_session_cookie(response, session.token)
    return Envelope(data=session, message="Registration successful")


@router.post("/login", response_model=Envelope[AuthSession])
def login(data: LoginRequest, request: Request, response: Response) -> Envelope[AuthSession]:
    session = get_account_service().authenticate(data.email, data.password, ip_address=client_ip(request))
    _set_session_cookie(response, session.token)
    return Envelope(data=session, message="Login successful")


@router.post("/logout", response_model=Envelope[None])
def logout(response: Response) -> Envelope[None]:
    response.delete_cookie(COOKIE_NAME, httponly=True, secure=COOKIE_SECURE, samesite="lax")
    return Envelope(message="User logged out successfully")


@router.get("/me", response_model=Envelope[AccountRead])
def get_me(account: CurrentAccount = Depends(get_current_account)) -> Envelope[AccountRead]:
    return Envelope(data=get_account_service().get_me(account.id))


@router.put("/me", response_model=Envelope[AccountRead])
def update_me(
    data: ProfileUpdate,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[AccountRead]:
    return Envelope(data=get_account_service().update_profile(account.id, data), message="Profile updated")
