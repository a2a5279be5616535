"""
Passkey (WebAuthn) API endpoints.

Registration and login ceremonies against the credential stored on the
account row, plus the platform-hosted login path. Every endpoint answers with
the ActionSuccess/ActionFailure envelope.
"""

from typing import Any

from django.http import HttpRequest, HttpResponse
from ninja import Router

from apps.accounts.sessions import SessionKind, issue_session_ticket, set_session_cookie
from apps.core.exceptions import AuthError
from apps.core.logging import get_logger
from apps.core.schemas import ActionFailure, ActionSuccess, fail
from apps.passkeys.hosted import get_hosted_login
from apps.passkeys.schemas import (
    HostedLoginOptionsRequest,
    HostedLoginVerifyRequest,
    HostedSessionData,
    LoginOptionsRequest,
    LoginVerifiedData,
    LoginVerifyRequest,
    RegisteredData,
    RegistrationOptionsRequest,
    RegistrationVerifyRequest,
)
from apps.passkeys.services import get_passkey_service

logger = get_logger(__name__)

router = Router(tags=["passkeys"])


def _failure(operation: str, error: AuthError) -> ActionFailure:
    logger.info("passkey_action_failed", operation=operation, error_code=str(error.code))
    return fail(error)


# --- Registration ---


@router.post(
    "/register/options",
    response=ActionSuccess[dict[str, Any]] | ActionFailure,
    operation_id="getRegistrationOptions",
    summary="Get passkey registration options",
)
def get_registration_options(
    request: HttpRequest, payload: RegistrationOptionsRequest
) -> ActionSuccess[dict[str, Any]] | ActionFailure:
    """Issue a registration challenge for navigator.credentials.create()."""
    try:
        options = get_passkey_service().generate_registration_options(payload.account_id)
    except AuthError as e:
        return _failure("get_registration_options", e)
    return ActionSuccess[dict[str, Any]](data=options)


@router.post(
    "/register/verify",
    response=ActionSuccess[RegisteredData] | ActionFailure,
    operation_id="verifyRegistration",
    summary="Complete passkey registration",
)
def verify_registration(
    request: HttpRequest, payload: RegistrationVerifyRequest
) -> ActionSuccess[RegisteredData] | ActionFailure:
    """Verify the attestation and store the credential on the account."""
    try:
        get_passkey_service().verify_registration(payload.account_id, payload.credential)
    except AuthError as e:
        return _failure("verify_registration", e)
    return ActionSuccess[RegisteredData](data=RegisteredData())


# --- Login ---


@router.post(
    "/login/options",
    response=ActionSuccess[dict[str, Any]] | ActionFailure,
    operation_id="getLoginOptions",
    summary="Get passkey login options",
)
def get_login_options(
    request: HttpRequest, payload: LoginOptionsRequest
) -> ActionSuccess[dict[str, Any]] | ActionFailure:
    """Issue an authentication challenge for navigator.credentials.get()."""
    try:
        options = get_passkey_service().generate_authentication_options(payload.account_id)
    except AuthError as e:
        return _failure("get_login_options", e)
    return ActionSuccess[dict[str, Any]](data=options)


@router.post(
    "/login/verify",
    response=ActionSuccess[LoginVerifiedData] | ActionFailure,
    operation_id="verifyLogin",
    summary="Complete passkey login",
)
def verify_login(
    request: HttpRequest, payload: LoginVerifyRequest
) -> ActionSuccess[LoginVerifiedData] | ActionFailure:
    """
    Verify the assertion.

    A failed assertion is a successful call with verified=false. On success
    the returned session_ticket opens the passkey session via
    /auth/passkey-session.
    """
    try:
        verified = get_passkey_service().verify_authentication(
            payload.account_id, payload.credential
        )
    except AuthError as e:
        return _failure("verify_login", e)

    if not verified:
        return ActionSuccess[LoginVerifiedData](data=LoginVerifiedData(verified=False))
    return ActionSuccess[LoginVerifiedData](
        data=LoginVerifiedData(verified=True, session_ticket=issue_session_ticket(payload.account_id))
    )


# --- Hosted login ---


@router.post(
    "/hosted/login/options",
    response=ActionSuccess[dict[str, Any]] | ActionFailure,
    operation_id="beginHostedLogin",
    summary="Begin platform-hosted passkey login",
)
def begin_hosted_login(
    request: HttpRequest, payload: HostedLoginOptionsRequest
) -> ActionSuccess[dict[str, Any]] | ActionFailure:
    """Get request options from the identity platform."""
    try:
        options = get_hosted_login().begin(payload.account_id)
    except AuthError as e:
        return _failure("begin_hosted_login", e)
    return ActionSuccess[dict[str, Any]](data=options)


@router.post(
    "/hosted/login/verify",
    response=ActionSuccess[HostedSessionData] | ActionFailure,
    operation_id="finishHostedLogin",
    summary="Finish platform-hosted passkey login",
)
def finish_hosted_login(
    request: HttpRequest, response: HttpResponse, payload: HostedLoginVerifyRequest
) -> ActionSuccess[HostedSessionData] | ActionFailure:
    """Verify the assertion with the identity platform and set the primary session cookie."""
    try:
        session = get_hosted_login().finish(payload.credential)
    except AuthError as e:
        return _failure("finish_hosted_login", e)

    set_session_cookie(response, SessionKind.BACKEND, session.secret)
    return ActionSuccess[HostedSessionData](
        data=HostedSessionData(account_id=session.account_id, session_id=session.session_id)
    )
