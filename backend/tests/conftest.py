import pytest
from fastapi.testclient import TestClient

from quicknotes.core.config import Settings
from quicknotes.main import create_app
from quicknotes.services.note_service import NoteService
from quicknotes.storage.local_table import LocalNotesTable


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        data_dir=tmp_path,
        jwt_secret="dev-secret-for-tests",
        jwt_exp_minutes=15,
        bcrypt_rounds=4,
        trust_user_header=True,
        health_check_interval_seconds=3600,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def client(tmp_path):
    # isolate data dir per test
    with TestClient(create_app(make_settings(tmp_path))) as c:
        yield c


@pytest.fixture()
def strict_client(tmp_path):
    # bearer tokens only, X-User-Id is ignored
    with TestClient(create_app(make_settings(tmp_path, trust_user_header=False))) as c:
        yield c


@pytest.fixture()
def table(tmp_path):
    return LocalNotesTable(tmp_path)


@pytest.fixture()
def service(table):
    return NoteService(table)
