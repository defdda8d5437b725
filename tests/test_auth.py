"""Tests for credential resolution."""

import base64

import pytest
from fastapi.security import HTTPBasicCredentials

from shared.models import Credentials


class TestBasicScheme:
    """Tests for extracting Basic credentials from a request."""

    @pytest.mark.asyncio
    async def test_valid_header(self, make_request, basic_auth):
        """Test decoding a well-formed header."""
        from mcp_server.auth import security

        basic = await security(make_request({"authorization": basic_auth("bob", "pw")}))

        assert basic.username == "bob"
        assert basic.password == "pw"

    @pytest.mark.asyncio
    async def test_password_may_contain_colons(self, make_request, basic_auth):
        """Test that only the first colon separates username and password."""
        from mcp_server.auth import security

        basic = await security(make_request({"authorization": basic_auth("bob", "p:a:ss")}))

        assert basic.username == "bob"
        assert basic.password == "p:a:ss"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scheme", ["basic", "BASIC"])
    async def test_scheme_is_case_insensitive(self, make_request, basic_auth, scheme):
        """Test that the scheme name is matched case-insensitively."""
        from mcp_server.auth import security

        token = basic_auth("bob", "pw").split(" ", 1)[1]
        basic = await security(make_request({"authorization": f"{scheme} {token}"}))

        assert basic.username == "bob"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [
        {},
        {"authorization": "Bearer abc.def.ghi"},
        {"authorization": "Basic"},
    ])
    async def test_nothing_to_parse(self, make_request, headers):
        """Test that no header, other schemes and a bare Basic yield nothing."""
        from mcp_server.auth import security

        assert await security(make_request(headers)) is None

    @pytest.mark.asyncio
    async def test_no_colon_rejected(self, make_request):
        """Test that a payload without a colon is invalid."""
        from mcp_server.auth import security
        from mcp_server.errors import InvalidCredentials

        token = base64.b64encode(b"justausername").decode()
        with pytest.raises(InvalidCredentials):
            await security(make_request({"authorization": f"Basic {token}"}))

    @pytest.mark.asyncio
    async def test_undecodable_payload_rejected(self, make_request):
        """Test that a non-base64 payload is invalid."""
        from mcp_server.auth import security
        from mcp_server.errors import InvalidCredentials

        with pytest.raises(InvalidCredentials):
            await security(make_request({"authorization": "Basic !!!not-base64!!!"}))


class TestResolveCredentials:
    """Tests for header/default precedence."""

    def setup_method(self):
        """Set up test fixtures."""
        self.defaults = Credentials(username="default", password="default-pw")

    def test_header_wins_over_defaults(self):
        """Test that header credentials take precedence."""
        from mcp_server.auth import resolve_credentials

        credentials = resolve_credentials(
            HTTPBasicCredentials(username="bob", password="pw"), self.defaults
        )

        assert credentials.username == "bob"
        assert credentials.password.get_secret_value() == "pw"

    def test_missing_header_uses_defaults(self):
        """Test falling back to the default credentials."""
        from mcp_server.auth import resolve_credentials

        assert resolve_credentials(None, self.defaults) is self.defaults

    @pytest.mark.parametrize("username,password", [("", "pw"), ("bob", ""), ("", "")])
    def test_empty_halves_do_not_fall_back(self, username, password):
        """Test that an empty username or password fails even with defaults."""
        from mcp_server.auth import resolve_credentials
        from mcp_server.errors import InvalidCredentials

        with pytest.raises(InvalidCredentials) as exc_info:
            resolve_credentials(
                HTTPBasicCredentials(username=username, password=password), self.defaults
            )

        assert exc_info.value.message == "Invalid credentials"

    def test_nothing_available(self):
        """Test that no header and no defaults is an authentication failure."""
        from mcp_server.auth import resolve_credentials
        from mcp_server.errors import MissingCredentials

        with pytest.raises(MissingCredentials) as exc_info:
            resolve_credentials(None, None)

        assert "Authentication required" in exc_info.value.message


class TestDefaultCredentials:
    """Tests for the process-wide default credentials."""

    def test_both_halves_required(self):
        """Test that a username without a password configures nothing."""
        from shared.config import DataForSEOSettings

        assert DataForSEOSettings(username="u", password=None).default_credentials() is None
        assert DataForSEOSettings(username=None, password="p").default_credentials() is None

    def test_from_environment(self, monkeypatch):
        """Test reading the defaults from the environment."""
        from shared.config import DataForSEOSettings

        monkeypatch.setenv("DATAFORSEO_USERNAME", "env-user")
        monkeypatch.setenv("DATAFORSEO_PASSWORD", "env-pw")

        credentials = DataForSEOSettings().default_credentials()

        assert credentials.username == "env-user"
        assert credentials.password.get_secret_value() == "env-pw"

    def test_generic_os_variables_ignored(self, monkeypatch):
        """Test that USERNAME and PASSWORD from the OS are not credentials."""
        from shared.config import DataForSEOSettings

        monkeypatch.setenv("USERNAME", "os-login")
        monkeypatch.setenv("PASSWORD", "os-pw")

        settings = DataForSEOSettings()

        assert settings.username is None
        assert settings.default_credentials() is None

    def test_generic_username_does_not_pair_with_password(self, monkeypatch):
        """Test that USERNAME never completes a half-configured default."""
        from shared.config import DataForSEOSettings

        monkeypatch.setenv("USERNAME", "os-login")
        monkeypatch.setenv("DATAFORSEO_PASSWORD", "env-pw")

        assert DataForSEOSettings().default_credentials() is None

    def test_yaml_field_names(self, tmp_path):
        """Test that the YAML file may use the plain field names."""
        from shared.config import Settings

        path = tmp_path / "settings.yaml"
        path.write_text("dataforseo:\n  username: yaml-user\n  password: yaml-pw\n")

        credentials = Settings.from_yaml(path).dataforseo.default_credentials()

        assert credentials.username == "yaml-user"
        assert credentials.password.get_secret_value() == "yaml-pw"
