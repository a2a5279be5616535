"""
Auth API endpoints.

Email OTP sign-up/sign-in, session establishment for both trust paths,
current-user lookup and sign-out. Every JSON endpoint answers with the
ActionSuccess/ActionFailure envelope; flow errors never surface as HTTP errors.
"""

from django.http import HttpRequest, HttpResponse
from ninja import Router

from apps.accounts import services
from apps.accounts.schemas import (
    AccountIdData,
    AccountSchema,
    PasskeySessionRequest,
    SendOTPRequest,
    SessionData,
    SignInData,
    SignInRequest,
    SignUpRequest,
    VerifyOTPRequest,
)
from apps.accounts.sessions import SessionKind, check_session_ticket, set_session_cookie
from apps.core.exceptions import AuthError, InvalidCredentialError
from apps.core.logging import get_logger
from apps.core.schemas import ActionFailure, ActionSuccess, fail

logger = get_logger(__name__)

router = Router(tags=["auth"])


def _failure(operation: str, error: AuthError) -> ActionFailure:
    logger.info("auth_action_failed", operation=operation, error_code=str(error.code))
    return fail(error)


@router.post(
    "/otp/send",
    response=ActionSuccess[AccountIdData] | ActionFailure,
    operation_id="sendEmailOTP",
    summary="Send email one-time code",
)
def send_email_otp(
    request: HttpRequest, payload: SendOTPRequest
) -> ActionSuccess[AccountIdData] | ActionFailure:
    """Send a fresh one-time code, whether or not an account exists yet."""
    try:
        account_id = services.send_email_otp(payload.email)
    except AuthError as e:
        return _failure("send_email_otp", e)
    return ActionSuccess[AccountIdData](data=AccountIdData(account_id=account_id))


@router.post(
    "/sign-up",
    response=ActionSuccess[AccountIdData] | ActionFailure,
    operation_id="createAccount",
    summary="Create account and send OTP",
)
def create_account(
    request: HttpRequest, payload: SignUpRequest
) -> ActionSuccess[AccountIdData] | ActionFailure:
    """
    Create an account (idempotent on email) and send a one-time code.

    Repeating the call with the same email returns the same account id.
    """
    try:
        account_id = services.create_account(full_name=payload.full_name, email=payload.email)
    except AuthError as e:
        return _failure("create_account", e)
    return ActionSuccess[AccountIdData](data=AccountIdData(account_id=account_id))


@router.post(
    "/sign-in",
    response=ActionSuccess[SignInData] | ActionFailure,
    operation_id="signInUser",
    summary="Look up account and send OTP",
)
def sign_in_user(
    request: HttpRequest, payload: SignInRequest
) -> ActionSuccess[SignInData] | ActionFailure:
    """Send a one-time code to a known account; unknown emails return a null account id."""
    try:
        result = services.sign_in_user(payload.email)
    except AuthError as e:
        return _failure("sign_in_user", e)
    return ActionSuccess[SignInData](
        data=SignInData(account_id=result.account_id, has_passkey=result.has_passkey)
    )


@router.post(
    "/otp/verify",
    response=ActionSuccess[SessionData] | ActionFailure,
    operation_id="verifySecret",
    summary="Verify OTP and open a session",
)
def verify_secret(
    request: HttpRequest, response: HttpResponse, payload: VerifyOTPRequest
) -> ActionSuccess[SessionData] | ActionFailure:
    """Exchange the code for a native session and set the primary session cookie."""
    try:
        session = services.verify_secret(payload.account_id, payload.code)
    except AuthError as e:
        return _failure("verify_secret", e)

    set_session_cookie(response, SessionKind.BACKEND, session.secret)
    return ActionSuccess[SessionData](data=SessionData(session_id=session.session_id))


@router.post(
    "/passkey-session",
    response=ActionSuccess[AccountIdData] | ActionFailure,
    operation_id="createPasskeySession",
    summary="Open a passkey session",
)
def create_passkey_session(
    request: HttpRequest, response: HttpResponse, payload: PasskeySessionRequest
) -> ActionSuccess[AccountIdData] | ActionFailure:
    """
    Set the passkey session cookie.

    Requires the ticket returned by a successful passkey login verification.
    """
    if not check_session_ticket(payload.ticket, payload.account_id):
        return _failure(
            "create_passkey_session",
            InvalidCredentialError("Passkey verification required before opening a session"),
        )

    account_id = services.create_passkey_session(response, payload.account_id)
    return ActionSuccess[AccountIdData](data=AccountIdData(account_id=account_id))


@router.get(
    "/me",
    response=ActionSuccess[AccountSchema | None] | ActionFailure,
    operation_id="getCurrentUser",
    summary="Get current account",
)
def get_current_user(request: HttpRequest) -> ActionSuccess[AccountSchema | None] | ActionFailure:
    """Return the signed-in account, or null data when nobody is signed in."""
    account = services.get_current_account(request)
    data = AccountSchema.model_validate(account) if account is not None else None
    return ActionSuccess[AccountSchema | None](data=data)


@router.post(
    "/sign-out",
    operation_id="signOutUser",
    summary="Sign out and redirect to the entry page",
)
def sign_out_user(request: HttpRequest) -> HttpResponse:
    """Revoke the native session (best effort), clear both cookies, redirect."""
    return services.sign_out(request)
