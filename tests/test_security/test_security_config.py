"""Tests for the YAML security config and route matching."""
from __future__ import annotations

import pytest

from useradmin.security.config import SecurityConfig, SecurityConfigModel, load_security_config

from conftest import SECURITY_CONFIG_PATH


def _config(raw: dict) -> SecurityConfig:
    return SecurityConfig(SecurityConfigModel.model_validate(raw))


def test_repo_config_loads():
    config = load_security_config(SECURITY_CONFIG_PATH)
    assert config.auth.bearer_prefix == "Bearer"
    assert config.match("/health", "GET").auth_required is False
    assert config.match("/api/users", "GET").auth_required is True
    assert config.permission_roles("user:del") == frozenset({"admin"})


def test_permissions_for_roles():
    config = load_security_config(SECURITY_CONFIG_PATH)
    assert config.permissions_for_roles({"staff"}) == {"user:list"}
    assert config.permissions_for_roles({"manager"}) == {"user:list", "user:add", "user:edit"}
    assert config.permissions_for_roles(set()) == set()


def test_exact_match_wins_over_template():
    config = _config(
        {
            "routes": [
                {"path": "/api/users/{id}", "methods": ["DELETE"], "required_permissions": ["user:del"]},
                {"path": "/api/users/me", "methods": ["DELETE"], "auth_required": False},
            ]
        }
    )
    assert config.match("/api/users/me", "delete").auth_required is False
    rule = config.match("/api/users/12", "DELETE")
    assert rule.required_permissions == frozenset({"user:del"})


def test_permissions_imply_auth_under_public_default():
    config = _config(
        {
            "default": {"auth_required": False},
            "routes": [{"path": "/api/users", "methods": ["GET"], "required_permissions": ["user:list"]}],
        }
    )
    assert config.match("/api/users", "GET").auth_required is True
    assert config.match("/anything", "GET").auth_required is False


def test_method_must_match():
    config = _config({"default": {"auth_required": False}, "routes": [{"path": "/x", "methods": ["POST"], "auth_required": True}]})
    assert config.match("/x", "GET").auth_required is False
    assert config.match("/x", "POST").auth_required is True


def test_missing_security_key_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("other: {}\n", encoding="utf-8")
    with pytest.raises(ValueError, match="security"):
        load_security_config(path)
