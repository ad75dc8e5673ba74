import importlib
import sys

import pytest
from flask import Flask

from app.studentms import create_app
from app.studentms.models import Base


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("CSRF_ENABLED", "0")
    monkeypatch.delenv("AUTO_CREATE_SCHEMA", raising=False)

    app = create_app()

    engine = app.extensions["sqlalchemy_engine"]
    Base.metadata.create_all(bind=engine)

    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True


def test_healthz_ok(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.data == b"ok"


def test_index_links_to_students(client):
    r = client.get("/")
    assert r.status_code == 200
    assert b"/students" in r.data


def test_unknown_path_renders_404(client):
    r = client.get("/no/such/page")
    assert r.status_code == 404
    assert b"Page not found." in r.data


def test_request_id_header(client):
    r1 = client.get("/students")
    r2 = client.get("/students")
    assert r1.status_code == 200
    assert len(r1.headers["X-Request-ID"]) == 32
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


def test_production_requires_postgres(tmp_path, monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "a-strong-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'prod.db'}")
    with pytest.raises(RuntimeError, match="Postgres"):
        create_app()


def test_production_rejects_default_secret(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "change-me")
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/students")
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        create_app()


def test_auto_create_schema(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'auto.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("AUTO_CREATE_SCHEMA", "1")

    app = create_app()
    r = app.test_client().get("/students")
    assert r.status_code == 200
    assert b"No students found." in r.data


def test_wsgi_module_exposes_app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'wsgi.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("AUTO_CREATE_SCHEMA", "1")
    monkeypatch.delitem(sys.modules, "app.wsgi", raising=False)

    wsgi = importlib.import_module("app.wsgi")
    assert isinstance(wsgi.app, Flask)
    assert wsgi.app.test_client().get("/healthz").data == b"ok"
