"""Example FastAPI application with credential reset and token endpoints.

This example demonstrates:
- Loading configuration from environment variables
- Backing one-time codes and users with JSON files
- Registering the /2fa and /auth routers with a shared per-user lock
- Protecting routes with the current user dependency

Required environment (or .env):
    JWT_SECRET=<openssl rand -hex 32>
    CLIENT_ID=frontend
    SECRET_KEY=<shared client secret>
    PEPPER=<server-side pepper>
"""

from typing import Any

from fastapi import Depends, FastAPI

from fastapi_credential_auth import (
    AuthConfig,
    JSONOTPStore,
    JSONUserStore,
    KeyedLock,
    UserRecord,
    get_auth_router,
    get_current_user_dependency,
    get_token_claims_dependency,
    get_two_factor_router,
    register_exception_handlers,
)

# Storage; one instance per file for the whole process
otp_store = JSONOTPStore("data/2fa.json")
user_store = JSONUserStore("data/all-data.json", collection="users")


def get_otp_store() -> JSONOTPStore:
    return otp_store


def get_user_store() -> JSONUserStore:
    return user_store


config = AuthConfig.from_env()
locks = KeyedLock()

app = FastAPI(
    title="FastAPI Credential Auth Example",
    description="One-time-code password resets with JWT sessions",
)
register_exception_handlers(app)

app.include_router(
    get_two_factor_router(get_otp_store, config, locks),
    prefix="/2fa",
    tags=["2FA"],
)
app.include_router(
    get_auth_router(get_otp_store, get_user_store, config, locks),
    prefix="/auth",
    tags=["Authentication"],
)

current_user = Depends(get_current_user_dependency(get_user_store, config))
token_claims = Depends(get_token_claims_dependency(config))


@app.get("/")
async def root() -> dict[str, str]:
    """Public endpoint."""
    return {
        "message": "Welcome to FastAPI Credential Auth",
        "docs": "/docs",
    }


@app.get("/protected")
async def protected_route(user: UserRecord = current_user) -> dict[str, str | None]:
    """Protected endpoint - requires an access token."""
    return {
        "message": "This is a protected route",
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
    }


@app.get("/claims")
async def claims_route(claims: dict[str, Any] = token_claims) -> dict[str, Any]:
    """Endpoint to view the decoded access token."""
    return {"message": "Access token claims", "claims": claims}


if __name__ == "__main__":
    import uvicorn

    print("""
    Starting FastAPI Credential Auth Example

    Try the following flow:

    1. Issue a code (the caller delivers it to the user):
       POST http://localhost:8000/2fa/generate
       {"userId": "u1", "clientId": "frontend", "secretKey": "..."}

    2. Reset the password with the code:
       POST http://localhost:8000/auth/password/reset
       {"username": "alice@example.com", "code": "123456",
        "password": "new-password", "confirmPassword": "new-password"}

    3. Log in:
       POST http://localhost:8000/auth/login
       {"email": "alice@example.com", "password": "new-password"}

    API Docs: http://localhost:8000/docs
    """)

    uvicorn.run(app, host="0.0.0.0", port=8000)
