"""
NoteKeeper Backend — Configuration Tests
==========================================

What we test:
    ✅ The app refuses to start without JWT_SECRET
    ✅ Settings validators (log level, algorithm) and env loading
    ✅ JWT_EXPIRE_MINUTES reaches the token service
"""

import pytest
from jose import jwt

from notekeeper.config import Settings
from notekeeper.main import create_app


class TestStartupValidation:

    def test_missing_secret_refused(self, db):
        with pytest.raises(ValueError, match="JWT_SECRET"):
            create_app(Settings(database_url="sqlite+aiosqlite://", jwt_secret=""), db=db)

    def test_expiry_setting_reaches_token_service(self, db):
        app = create_app(
            Settings(database_url="sqlite+aiosqlite://", jwt_secret="s", jwt_expire_minutes=10),
            db=db,
        )
        token = app.state.token_service.issue(type("Identity", (), {"id": "x"})())
        assert "exp" in jwt.get_unverified_claims(token)


class TestSettings:

    def test_env_variables_are_read(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "from-env")
        monkeypatch.setenv("BCRYPT_ROUNDS", "6")
        cfg = Settings()
        assert cfg.jwt_secret.get_secret_value() == "from-env"
        assert cfg.bcrypt_rounds == 6

    def test_secret_not_in_repr(self):
        cfg = Settings(jwt_secret="super-secret-value")
        assert "super-secret-value" not in repr(cfg)

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Settings(log_level="LOUD")

    def test_asymmetric_algorithm_rejected(self):
        with pytest.raises(ValueError):
            Settings(jwt_algorithm="RS256")

    def test_defaults(self):
        cfg = Settings(_env_file=None)
        assert cfg.backend_port == 9876
        assert cfg.jwt_expire_minutes is None
        assert cfg.cors_origins_list == ["*"]
