"""Smoke tests: the app boots, answers, and maps errors to ``{"message": ...}``."""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import inspect

from orderdesk.core import database as db_module
from orderdesk.core.database import Base, init_db, make_engine
from orderdesk.core.logging_config import JsonFormatter, configure_logging
from orderdesk.main import app, get_application


def test_app_boots():
    assert isinstance(app, FastAPI)
    paths = set(app.openapi()["paths"])
    assert {
        "/coupons/",
        "/coupons/apply",
        "/orders/",
        "/orders/{order_id}",
        "/orders/{order_id}/status",
    } <= paths


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["app"] == "orderdesk"
    assert data["status"] == "running"


def test_unknown_route_uses_message_shape(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json() == {"message": "Not Found"}


def test_validation_error_is_400(client):
    response = client.post("/coupons/apply", content="not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid request data")


def test_unhandled_error_is_500_and_logged(caplog, monkeypatch):
    monkeypatch.setattr("orderdesk.main.configure_logging", lambda *args: None)
    application = get_application()

    @application.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    client = TestClient(application, raise_server_exceptions=False)
    with caplog.at_level(logging.ERROR, logger="orderdesk.main"):
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal Server Error"}
    assert "kaboom" not in response.text
    assert any("/boom" in r.getMessage() for r in caplog.records)


def test_json_formatter_includes_extras():
    record = logging.makeLogRecord(
        {"name": "orderdesk.test", "levelname": "INFO", "msg": "hello %s", "args": ("world",)}
    )
    record.order_id = "abc"
    line = JsonFormatter().format(record)
    assert '"message": "hello world"' in line
    assert '"order_id": "abc"' in line


def test_configure_logging_sets_level():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("warning", json_logs=True)
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_openapi_documents_error_shape():
    schema = app.openapi()
    assert "MessageResponse" in schema["components"]["schemas"]
    apply = schema["paths"]["/coupons/apply"]["post"]["responses"]
    assert apply["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/MessageResponse")


@pytest.mark.parametrize("debug, expected_calls", [(True, 1), (False, 0)])
def test_debug_creates_tables(monkeypatch, debug, expected_calls):
    calls = []
    monkeypatch.setattr("orderdesk.main.settings.DEBUG", debug)
    monkeypatch.setattr("orderdesk.main.init_db", lambda: calls.append(True))
    monkeypatch.setattr("orderdesk.main.configure_logging", lambda *args: None)

    get_application()
    assert len(calls) == expected_calls


def test_init_db_creates_tables():
    Base.metadata.drop_all(bind=db_module.engine)
    init_db()
    tables = set(inspect(db_module.engine).get_table_names())
    assert {"coupons", "orders", "idempotency_records"} <= tables


def test_make_engine_sqlite_allows_cross_thread_use(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'x.db'}")
    try:
        with engine.connect() as conn:
            assert conn.exec_driver_sql("select 1").scalar() == 1
    finally:
        engine.dispose()
