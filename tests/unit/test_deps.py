"""Unit tests for the authentication and access guard dependencies."""

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from luna.api import errors
from luna.api.deps import (
    CurrentIdentity,
    OptionalIdentity,
    SubscribedUser,
    VerifiedUser,
    get_store,
    get_user_directory,
)
from luna.kernel.identity.jwt import get_jwt_manager
from luna.kernel.models.user import SubscriptionStatus


@pytest.fixture
def guarded_app(store, jwt_manager):
    app = FastAPI()

    errors.init_app(app)

    @app.get("/whoami")
    async def whoami(identity: CurrentIdentity):
        return {"userId": identity.user_id, "email": identity.email}

    @app.get("/maybe")
    async def maybe(identity: OptionalIdentity):
        return {"userId": identity.user_id if identity else None}

    @app.get("/verified")
    async def verified(user: VerifiedUser):
        return {"email": user.email}

    @app.get("/subscribed")
    async def subscribed(user: SubscribedUser):
        return {"plan": user.subscription.plan}

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_jwt_manager] = lambda: jwt_manager
    return app


@pytest_asyncio.fixture
async def guarded_client(guarded_app):
    async with AsyncClient(transport=ASGITransport(app=guarded_app), base_url="http://test") as ac:
        yield ac


class TestCurrentIdentity:
    @pytest.mark.asyncio
    async def test_resolves_identity(self, guarded_client, auth_headers, test_user):
        response = await guarded_client.get("/whoami", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"userId": test_user.id, "email": test_user.email}

    @pytest.mark.asyncio
    async def test_user_removed_after_issue(self, guarded_client, auth_headers, directory, test_user):
        await directory.delete_user(test_user.id)

        response = await guarded_client.get("/whoami", headers=auth_headers)

        assert response.status_code == 401
        assert response.json()["code"] == "USER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_optional_identity(self, guarded_client, auth_headers, test_user):
        anonymous = await guarded_client.get("/maybe")
        known = await guarded_client.get("/maybe", headers=auth_headers)

        assert anonymous.json() == {"userId": None}
        assert known.json() == {"userId": test_user.id}


class TestGuards:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/verified", "/subscribed"])
    async def test_anonymous_rejected(self, guarded_client, path):
        response = await guarded_client.get(path)

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_REQUIRED"

    @pytest.mark.asyncio
    async def test_unverified_email_forbidden(self, guarded_client, auth_headers):
        response = await guarded_client.get("/verified", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "EMAIL_NOT_VERIFIED"

    @pytest.mark.asyncio
    async def test_verified_email_allowed(self, guarded_client, auth_headers, directory, test_user):
        await directory.verify_email(test_user.id)

        response = await guarded_client.get("/verified", headers=auth_headers)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_subscription_guard(self, guarded_client, auth_headers, directory, test_user):
        allowed = await guarded_client.get("/subscribed", headers=auth_headers)
        await directory.update_user(test_user.id, {"subscription": {"status": SubscriptionStatus.CANCELLED}})
        denied = await guarded_client.get("/subscribed", headers=auth_headers)

        assert allowed.status_code == 200
        assert allowed.json() == {"plan": "free"}
        assert denied.status_code == 403
        assert denied.json()["code"] == "SUBSCRIPTION_REQUIRED"


class BrokenDirectory:
    async def find_user_by_id(self, user_id):
        raise RuntimeError("directory unavailable")


class TestDirectoryFailure:
    @pytest.fixture
    def broken_app(self, guarded_app):
        guarded_app.dependency_overrides[get_user_directory] = lambda: BrokenDirectory()
        return guarded_app

    @pytest.mark.asyncio
    async def test_lookup_error_is_auth_failed(self, broken_app, auth_headers):
        async with AsyncClient(transport=ASGITransport(app=broken_app), base_url="http://test") as client:
            response = await client.get("/whoami", headers=auth_headers)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json() == {
            "success": False,
            "error": "Authentication failed",
            "code": "AUTH_FAILED",
        }

    @pytest.mark.asyncio
    async def test_optional_identity_falls_back_to_anonymous(self, broken_app, auth_headers):
        async with AsyncClient(transport=ASGITransport(app=broken_app), base_url="http://test") as client:
            response = await client.get("/maybe", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"userId": None}
