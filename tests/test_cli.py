"""
Tests for the custom Flask CLI commands.
"""

from itam.extensions import db
from itam.models.user import User


class TestSeedAdmin:
    def test_creates_admin(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-admin", "--email", "ops@example.com"])
        assert result.exit_code == 0
        user = User.query.filter_by(email="ops@example.com").one()
        assert user.role == "admin"

    def test_promotes_existing_user(self, app, employee):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-admin", "--email", employee.email])
        assert result.exit_code == 0
        assert "already exists" in result.output
        db.session.expire_all()
        assert User.query.filter_by(email=employee.email).one().role == "admin"


class TestAssetSummary:
    def test_prints_counts(self, app, make_asset):
        make_asset()
        result = app.test_cli_runner().invoke(args=["asset-summary"])
        assert result.exit_code == 0
        assert "available" in result.output
        assert "total" in result.output


class TestDbCheck:
    def test_reports_ready(self, app):
        result = app.test_cli_runner().invoke(args=["db-check"])
        assert result.exit_code == 0
        assert "All checks passed" in result.output
