import importlib.util
from pathlib import Path

import pytest
from dotenv import dotenv_values

from app.shared.database.models import Organization, User

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def load_script(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(scope="module")
def switch_db_branch():
    return load_script("switch_db_branch")


def test_branch_values_requires_database_url(switch_db_branch):
    with pytest.raises(ValueError):
        switch_db_branch.branch_values("dev", {})


def test_direct_url_falls_back_to_database_url(switch_db_branch):
    values = switch_db_branch.branch_values("prod", {"PROD_DATABASE_URL": "postgresql://u:p@prod-host/db"})

    assert values["DIRECT_URL"] == "postgresql://u:p@prod-host/db"
    assert values["APP_ENV"] == "production"
    assert values["DEBUG"] == "false"


def test_switch_branch_writes_env_file(switch_db_branch, tmp_path):
    environ = {
        "DEV_DATABASE_URL": "postgresql://u:p@dev-host.neon.tech/apex",
        "DEV_DIRECT_URL": "postgresql://u:p@dev-direct.neon.tech/apex",
    }

    env_path = switch_db_branch.switch_branch("dev", root=tmp_path, environ=environ)

    assert env_path == tmp_path / ".env.local"
    values = dotenv_values(env_path)
    assert values["DATABASE_URL"] == environ["DEV_DATABASE_URL"]
    assert values["DIRECT_URL"] == environ["DEV_DIRECT_URL"]
    assert values["APP_ENV"] == "development"


def test_switch_branch_preserves_other_lines(switch_db_branch, tmp_path):
    env_path = tmp_path / ".env.production"
    env_path.write_text('SECRET_KEY="no-tocar"\nDATABASE_URL="vieja"\n', encoding="utf-8")

    switch_db_branch.switch_branch("prod", root=tmp_path, environ={"PROD_DATABASE_URL": "postgresql://nueva"})

    values = dotenv_values(env_path)
    assert values["SECRET_KEY"] == "no-tocar"
    assert values["DATABASE_URL"] == "postgresql://nueva"


def test_describe_host(switch_db_branch):
    assert switch_db_branch.describe_host("postgresql://u:p@ep-cool.neon.tech/apex?sslmode=require") == "ep-cool.neon.tech"
    assert switch_db_branch.describe_host("sqlite://") == "URL configurada"


@pytest.mark.parametrize("argv", [["switch_db_branch.py"], ["switch_db_branch.py", "staging"]])
def test_main_rejects_bad_arguments(switch_db_branch, argv):
    assert switch_db_branch.main(argv) == 1


def test_create_test_users_is_idempotent(db_session):
    create_test_users = load_script("create_test_users")

    assert create_test_users.create_test_users(db_session) == 4
    assert create_test_users.create_test_users(db_session) == 0

    organization = db_session.query(Organization).filter(Organization.slug == "apex-demo").one()
    root = db_session.query(User).filter(User.role == "root").one()
    assert root.organization_id is None
    assert db_session.query(User).filter(User.organization_id == organization.id).count() == 3
