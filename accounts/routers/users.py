from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from accounts.controllers.users_controller import UsersController
from accounts.core.rate_limiter import rate_limit_ip
from accounts.db.session import get_db_session

router = APIRouter(prefix="/api/users", tags=["users"])


@lru_cache
def get_users_controller() -> UsersController:
    return UsersController()


@router.post("")
async def create_user(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    rate_limit_ip(request, "users:register", limit=3, window_seconds=300)
    return await controller.create_user(request, session)


@router.post("/login")
async def login(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    rate_limit_ip(request, "users:login", limit=5, window_seconds=60)
    return await controller.login(request, session)


@router.get("/me")
async def get_user(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    return await controller.get_user(request, session)


@router.post("/report")
async def report(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    return await controller.report(request, session)


@router.post("/exists")
async def does_username_and_email_exist(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    return await controller.does_username_and_email_exist(request, session)


@router.post("/forgot-password")
async def forgot_password(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    rate_limit_ip(request, "users:forgot", limit=5, window_seconds=300)
    return await controller.forgot_password(request, session)


@router.post("/change-forgotten-password")
async def change_forgotten_password(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    return await controller.change_forgotten_password(request, session)


@router.post("/verify-email")
async def verify_email(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    return await controller.verify_email(request, session)


@router.post("/newsletter")
async def create_newsletter_member(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    return await controller.create_newsletter_member(request, session)


@router.delete("/newsletter")
async def delete_newsletter_member(
    request: Request,
    session: Session = Depends(get_db_session),
    controller: UsersController = Depends(get_users_controller),
):
    return await controller.delete_newsletter_member(request, session)
