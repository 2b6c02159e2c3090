"""Tests for the SSO login/logout routes and session lifecycle."""

from unittest.mock import AsyncMock

import pytest

from waad_sso.services.identity.base import RawProfile
from waad_sso.services.identity.errors import SamlValidationError
from waad_sso.services.identity.graph import GraphAPIError


@pytest.mark.unit
class TestMockModeLogin:
    """Service name "test": no IdP, no directory."""

    @pytest.fixture
    def client(self, make_client):
        client, _ = make_client(service_name="test")
        return client

    def test_login_logs_in_placeholder_user(self, client):
        response = client.get("/login")

        assert response.status_code == 200
        body = response.json()
        assert body["authenticated"] is True
        assert body["email"] == "notArealUser@somewhere.com"
        assert body["mock"] is True

    def test_me_returns_placeholder_with_no_groups(self, client):
        client.get("/login")

        response = client.get("/me")

        assert response.status_code == 200
        assert response.json()["email"] == "notArealUser@somewhere.com"
        assert response.json()["groups"] == []

    def test_logout_ends_session(self, client):
        client.get("/login")

        response = client.get("/logout", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert client.get("/").json()["authenticated"] is False

    def test_login_does_not_redirect_to_idp(self, client):
        response = client.get("/login", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/"


@pytest.mark.unit
class TestDirectoryLogin:
    """Assertion -> directory enrichment -> cached session principal."""

    @pytest.fixture
    def make(self, make_client, stub_strategy, mock_graph_client):
        def _make(profile=None, error=None, graph_client=None):
            strategy = stub_strategy(profile or RawProfile(email="a@x.com"), error)
            return make_client(strategy=strategy, graph_client=graph_client or mock_graph_client)

        return _make

    def test_login_enriches_and_caches_user(self, make, mock_graph_client):
        client, app = make()

        response = client.post("/login/callback")

        assert response.status_code == 200
        assert response.json()["email"] == "a@x.com"
        cached = app.state.sso.cache.find_by_email("a@x.com")
        assert cached is not None
        assert cached.group_names == ["Eng"]
        mock_graph_client.get_user.assert_awaited_once_with("contoso", "graph-token", "a@x.com")

    def test_login_callback_redirects_home(self, make):
        client, _ = make()

        response = client.post("/login/callback", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    def test_me_serializes_directory_keys(self, make):
        client, _ = make()
        client.post("/login/callback")

        body = client.get("/me").json()

        assert body["email"] == "a@x.com"
        assert body["objectId"] == "1"
        assert body["displayName"] == "Alice Example"
        assert body["groups"] == [{"name": "Eng"}]

    def test_directory_consulted_once_per_cached_email(self, make, mock_graph_client):
        client, app = make()

        client.post("/login/callback")
        client.get("/logout")
        client.post("/login/callback")

        # Logout evicted the record, so the second login hits the directory again
        assert mock_graph_client.get_token.await_count == 2

        client.post("/login/callback")
        assert mock_graph_client.get_token.await_count == 2
        assert len(app.state.sso.cache) == 1

    def test_missing_email_flashes_and_caches_nothing(self, make, mock_graph_client):
        client, app = make(profile=RawProfile(email=None))

        response = client.post("/login/callback")

        body = response.json()
        assert body["authenticated"] is False
        assert body["flash"] == {"error": "No email found"}
        assert len(app.state.sso.cache) == 0
        mock_graph_client.get_token.assert_not_called()

    def test_enrichment_failure_flashes_and_caches_nothing(self, make, mock_graph_client):
        mock_graph_client.get_token = AsyncMock(side_effect=GraphAPIError("bad secret", status_code=401))
        client, app = make()

        response = client.post("/login/callback")

        body = response.json()
        assert body["authenticated"] is False
        assert "token" in body["flash"]["error"]
        assert len(app.state.sso.cache) == 0

    def test_invalid_assertion_flashes(self, make, mock_graph_client):
        client, app = make(error=SamlValidationError(["invalid_response"], "Signature validation failed"))

        response = client.post("/login/callback")

        assert response.json()["flash"] == {
            "error": "invalid_response (Signature validation failed)"
        }
        assert len(app.state.sso.cache) == 0
        mock_graph_client.get_token.assert_not_called()

    def test_flash_is_shown_once(self, make):
        client, _ = make(profile=RawProfile(email=""))

        client.post("/login/callback")

        assert client.get("/").json()["flash"] is None


@pytest.mark.unit
class TestLogout:
    """Logout evicts the cached principal before clearing the session."""

    @pytest.fixture
    def logged_in(self, make_client, stub_strategy, mock_graph_client):
        client, app = make_client(
            strategy=stub_strategy(RawProfile(email="a@x.com")), graph_client=mock_graph_client
        )
        client.post("/login/callback")
        return client, app

    def test_logout_evicts_cache(self, logged_in):
        client, app = logged_in
        assert app.state.sso.cache.find_by_email("a@x.com") is not None

        client.get("/logout")

        assert app.state.sso.cache.find_by_email("a@x.com") is None
        assert client.get("/me", follow_redirects=False).status_code == 302

    def test_anonymous_logout_is_harmless(self, make_client, stub_strategy):
        client, app = make_client(strategy=stub_strategy(RawProfile(email="a@x.com")))

        response = client.get("/logout", follow_redirects=False)

        assert response.status_code == 302
        assert len(app.state.sso.cache) == 0

    def test_session_for_evicted_user_is_anonymous(self, logged_in):
        """A cookie whose email is no longer cached deserializes to nobody."""
        client, app = logged_in

        app.state.sso.cache.remove_all_matching("a@x.com")

        assert client.get("/").json()["authenticated"] is False
        assert client.get("/me", follow_redirects=False).status_code == 302

    def test_logout_callback_redirects_home(self, logged_in):
        client, app = logged_in

        response = client.post("/logout/callback", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        # Back-channel logout is acknowledged only
        assert len(app.state.sso.cache) == 1


@pytest.mark.unit
class TestLoginRedirect:
    """GET /login and metadata with an external identity provider."""

    @pytest.fixture
    def client(self, make_client, stub_strategy):
        client, _ = make_client(strategy=stub_strategy(RawProfile(email="a@x.com")))
        return client

    def test_login_redirects_to_idp(self, client):
        response = client.get("/login", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"].startswith("https://idp.example.com/sso")

    def test_anonymous_me_redirects_to_login(self, client):
        response = client.get("/me", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/login"

    def test_metadata_not_available_without_saml(self, client):
        assert client.get("/login/metadata").status_code == 404

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
