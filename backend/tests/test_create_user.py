"""
Tests for create_user.py - Command-line user creation.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


@pytest.fixture
def script(mock_db_session):
    import create_user

    session_factory = MagicMock()
    session_factory.return_value.__aenter__ = AsyncMock(return_value=mock_db_session)
    session_factory.return_value.__aexit__ = AsyncMock(return_value=False)
    engine = MagicMock()
    engine.dispose = AsyncMock()

    with patch.object(create_user, "AsyncSessionLocal", session_factory), \
            patch.object(create_user, "init_db", new_callable=AsyncMock), \
            patch.object(create_user, "engine", engine), \
            patch.object(create_user, "AuthService") as service_cls:
        yield create_user, service_cls.return_value, engine


class TestParseArgs:

    def test_all_arguments_required(self):
        import create_user

        with pytest.raises(SystemExit):
            create_user.parse_args(["--username", "bob"])

    def test_parses_credentials(self):
        import create_user

        args = create_user.parse_args(["--username", "bob", "--email", "bob@example.com", "--password", "secret123"])

        assert (args.username, args.email, args.password) == ("bob", "bob@example.com", "secret123")


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_creates_user(self, script, mock_user, capsys):
        create_user, service, engine = script
        service.ensure_user = AsyncMock(return_value=(mock_user, True))

        exit_code = await create_user.create_user("testuser", "test@example.com", "secret123")

        assert exit_code == 0
        service.ensure_user.assert_awaited_once_with(
            "testuser", "test@example.com", "secret123", reset_password=True
        )
        assert "Created user: testuser" in capsys.readouterr().out
        engine.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_weak_password_reported(self, script, capsys):
        from employee_api.core.exceptions import ValidationError

        create_user, service, engine = script
        service.ensure_user = AsyncMock(
            side_effect=ValidationError("Invalid password", "Password must be at least 6 characters long")
        )

        exit_code = await create_user.create_user("testuser", "test@example.com", "123")

        assert exit_code == 1
        assert "Invalid password" in capsys.readouterr().err
        engine.dispose.assert_awaited_once()
