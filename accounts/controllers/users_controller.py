"""
HTTP handlers for the account lifecycle.

Each handler reads a view-model from the request body, runs its validator
chain, calls the matching ``UsersService`` method with the request's database
session and answers with the service response. Anything raised on the way is
turned into a JSON error by ``return_error``.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Callable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from accounts.core.emailer import Emailer
from accounts.core.errors import return_error
from accounts.core.validation import (
    Field,
    chain,
    create_validation_error_message,
    create_validation_errors,
    email,
    min_length,
    required,
)
from accounts.domain.view_models import (
    ChangeForgottenPasswordViewModel,
    CreateUserViewModel,
    ForgotPasswordViewModel,
    LoginViewModel,
    NewsletterMemberViewModel,
)
from accounts.services.session_service import SessionUserContext
from accounts.services.users_service import UsersService

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6


async def read_body(request: Request) -> Any:
    """Return the decoded JSON body, or an empty dict when it is missing or malformed."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return {}


def _new_code() -> str:
    return str(uuid.uuid4())


class UsersController:
    def __init__(
        self,
        users_service: Optional[UsersService] = None,
        emailer: Optional[Emailer] = None,
        user_context: Optional[SessionUserContext] = None,
        code_factory: Callable[[], str] = _new_code,
    ) -> None:
        self.users_service = users_service or UsersService()
        self.emailer = emailer or Emailer()
        self.user_context = user_context or SessionUserContext()
        self.code_factory = code_factory

    def return_error(self, error: BaseException) -> JSONResponse:
        return return_error(error)

    async def _current_user_id(self, request: Request, session: Session) -> int:
        return await run_in_threadpool(self.user_context.current_user_id, request, session)

    async def create_user(self, request: Request, session: Session) -> JSONResponse:
        try:
            view_model = CreateUserViewModel.from_body(await read_body(request))
            username = Field("username", view_model.username)
            email_field = Field("email", view_model.email)
            password = Field("password", view_model.password)

            valid = chain(
                (required, username),
                (required, email_field),
                (required, password),
                (min_length(PASSWORD_MIN_LENGTH), password),
                (email, email_field),
            )
            if valid is not None:
                raise create_validation_errors(valid)

            response = await run_in_threadpool(
                self.users_service.create_user, session, view_model.email, view_model.username, view_model.password
            )
            sent = await run_in_threadpool(
                self.emailer.welcome_email, response["email"], response["username"], response["emailCode"]
            )
            if not sent:
                logger.warning("Welcome email was not delivered to %s", response["email"])

            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def login(self, request: Request, session: Session) -> JSONResponse:
        try:
            view_model = LoginViewModel.from_body(await read_body(request))
            password = Field("password", view_model.password)

            valid = chain(
                (required, Field("emailOrUsername", view_model.email_or_username)),
                (required, password),
                (min_length(PASSWORD_MIN_LENGTH), password),
            )
            if valid is not None:
                raise create_validation_errors(valid)

            response = await run_in_threadpool(
                self.users_service.login, session, view_model.email_or_username, view_model.password
            )
            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def get_user(self, request: Request, session: Session) -> JSONResponse:
        try:
            user_id = await self._current_user_id(request, session)
            response = await run_in_threadpool(self.users_service.get_user_by_id, session, user_id)
            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def report(self, request: Request, session: Session) -> JSONResponse:
        try:
            # TODO: reporting has no backing service yet; acknowledge with an empty body.
            return JSONResponse({}, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def does_username_and_email_exist(self, request: Request, session: Session) -> JSONResponse:
        try:
            view_model = CreateUserViewModel.from_body(await read_body(request))

            response = await run_in_threadpool(
                self.users_service.does_username_and_email_exist, session, view_model.email, view_model.username
            )
            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def forgot_password(self, request: Request, session: Session) -> JSONResponse:
        try:
            view_model = ForgotPasswordViewModel.from_body(await read_body(request))
            email_field = Field("email", view_model.email)

            valid = chain(
                (required, email_field),
                (email, email_field),
            )
            if valid is not None:
                raise create_validation_errors(valid)

            code = self.code_factory()

            response = await run_in_threadpool(self.users_service.forgot_password, session, view_model.email, code)
            sent = await run_in_threadpool(self.emailer.forgot_password_email, response["email"], code)
            if not sent:
                logger.warning("Password reset email was not delivered to %s", response["email"])

            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def change_forgotten_password(self, request: Request, session: Session) -> JSONResponse:
        try:
            view_model = ChangeForgottenPasswordViewModel.from_body(await read_body(request))
            email_field = Field("email", view_model.email)
            password = Field("password", view_model.password)

            valid = chain(
                (required, email_field),
                (email, email_field),
                (required, Field("code", view_model.code)),
                (required, password),
                (min_length(PASSWORD_MIN_LENGTH), password),
            )
            if valid is not None:
                raise create_validation_errors(valid)

            response = await run_in_threadpool(
                self.users_service.change_forgotten_password,
                session,
                view_model.email,
                view_model.code,
                view_model.password,
            )
            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def verify_email(self, request: Request, session: Session) -> JSONResponse:
        try:
            body = await read_body(request)
            code = body.get("code") if isinstance(body, dict) else None

            if code is None:
                raise create_validation_error_message("email", "Invalid email code")

            user_id = await self._current_user_id(request, session)
            response = await run_in_threadpool(self.users_service.verify_email, session, user_id, code)
            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def create_newsletter_member(self, request: Request, session: Session) -> JSONResponse:
        try:
            view_model = NewsletterMemberViewModel.from_body(await read_body(request))

            valid = chain((required, Field("email", view_model.email)))
            if valid is not None:
                raise create_validation_errors(valid)

            response = await run_in_threadpool(self.users_service.create_newsletter_member, session, view_model.email)
            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)

    async def delete_newsletter_member(self, request: Request, session: Session) -> JSONResponse:
        try:
            view_model = NewsletterMemberViewModel.from_body(await read_body(request))

            valid = chain((required, Field("email", view_model.email)))
            if valid is not None:
                raise create_validation_errors(valid)

            response = await run_in_threadpool(self.users_service.delete_newsletter_member, session, view_model.email)
            return JSONResponse(response, status_code=200)
        except Exception as error:
            return self.return_error(error)
