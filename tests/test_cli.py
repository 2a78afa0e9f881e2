"""Tests for the administration CLI."""

import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from helix import cli as cli_module
from helix.db.base import Base
from helix.db.models import Role, SystemSetting, User
from helix.services import permission_service


@pytest.fixture
def cli_sessions(monkeypatch):
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    Sessions = sessionmaker(bind=engine, autoflush=False)
    monkeypatch.setattr(cli_module, "SessionLocal", Sessions)
    yield Sessions
    engine.dispose()


def test_seed_rbac_is_repeatable(cli_sessions):
    runner = CliRunner()

    first = runner.invoke(cli_module.cli, ["seed-rbac"])
    second = runner.invoke(cli_module.cli, ["seed-rbac"])

    assert first.exit_code == 0, first.output
    assert "Roles created: 3" in first.output
    assert second.exit_code == 0, second.output
    assert "Roles created: 0" in second.output

    db = cli_sessions()
    try:
        assert db.query(Role).count() == 3
        assert db.query(SystemSetting).filter(SystemSetting.key == "BUSINESS_NAME").count() == 1
    finally:
        db.close()


def test_assign_role_bootstraps_first_admin(cli_sessions):
    runner = CliRunner()
    runner.invoke(cli_module.cli, ["seed-rbac"])

    result = runner.invoke(
        cli_module.cli, ["assign-role", "--email", "Boss@Test.com", "--role", "Super Admin"]
    )

    assert result.exit_code == 0, result.output
    assert "Created user boss@test.com" in result.output

    db = cli_sessions()
    try:
        user = db.query(User).filter(User.email == "boss@test.com").one()
        assert permission_service.check_permission(db, user, "users.manage") is True
    finally:
        db.close()


def test_assign_unknown_role_fails(cli_sessions):
    runner = CliRunner()
    runner.invoke(cli_module.cli, ["seed-rbac"])

    result = runner.invoke(
        cli_module.cli, ["assign-role", "--email", "x@test.com", "--role", "Wizard"]
    )

    assert result.exit_code != 0
    assert "Role 'Wizard' not found" in result.output
