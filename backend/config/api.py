"""
Django Ninja API configuration.
"""

from django.http import HttpRequest
from ninja import NinjaAPI

from apps.accounts.api import router as auth_router
from apps.passkeys.api import router as passkeys_router

api = NinjaAPI(
    title="Dual-Credential Auth API",
    version="1.0.0",
    description="Email one-time code and WebAuthn passkey authentication.",
    openapi_extra={
        "info": {
            "contact": {"name": "API Support"},
        },
        "tags": [
            {
                "name": "auth",
                "description": "Email OTP sign-up/sign-in, session cookies and sign-out",
            },
            {
                "name": "passkeys",
                "description": "WebAuthn passkey registration and login",
            },
            {
                "name": "health",
                "description": "Service health and readiness checks",
            },
        ],
    },
)

# Register routers
api.add_router("/auth", auth_router)
api.add_router("/passkeys", passkeys_router)


@api.get("/health", tags=["health"], operation_id="healthCheck", summary="Health check")
def health_check(request: HttpRequest) -> dict:
    """Health check endpoint for load balancer."""
    return {"status": "ok"}
