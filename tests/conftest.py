"""
Pytest configuration and shared fixtures for fineract-setup tests.

This module provides reusable fixtures and test utilities used across
the test suite: settings built from an explicit environment, workbook
byte builders, and a waiter that records backoff instead of sleeping.

XLS workbooks cannot be written by any installed library, so XLS fixtures
are OLE2-signed byte strings that a patched xlrd.open_workbook opens as
fake books. Malformed XLS input still goes through the real xlrd.
"""

from __future__ import annotations

import datetime as dt
from io import BytesIO
from pathlib import Path
from typing import Any

import openpyxl
import pytest
import requests
import xlrd
import yaml

from fineract_setup.auth.provider import AuthProvider, Credentials
from fineract_setup.config import load_settings
from fineract_setup.logging import SilentLogger, set_global_logger
from fineract_setup.workbook import OLE2_MAGIC

API_URL = "https://fineract.example.com/fineract-provider/api/v1"
TOKEN_URL = (
    "https://auth.example.com/realms/fineract/protocol/openid-connect/token"
)

BASE_ENV: dict[str, str] = {
    "FINERACT_API_URL": API_URL,
    "FINERACT_TENANT": "default",
    "FINERACT_USERNAME": "mifos",
    "FINERACT_PASSWORD": "password",
    "KEYCLOAK_URL": TOKEN_URL,
    "KEYCLOAK_CLIENT_ID": "community-app",
    "KEYCLOAK_CLIENT_SECRET": "s3cret",
}


class RecordingWaiter:
    """Stands in for interruptible_wait and records every requested delay."""

    def __init__(self, cancel_after: int | None = None) -> None:
        self.calls: list[float] = []
        self.cancel_after = cancel_after

    def __call__(self, seconds, cancel_event) -> bool:
        self.calls.append(seconds)
        if self.cancel_after is not None and len(self.calls) >= self.cancel_after:
            if cancel_event is not None:
                cancel_event.set()
            return False
        return not (cancel_event is not None and cancel_event.is_set())


@pytest.fixture(autouse=True)
def silent_logger():
    """Reset the global logger so CLI tests don't leak verbosity."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def base_env() -> dict[str, str]:
    """Provide a complete, valid environment mapping."""
    return dict(BASE_ENV)


@pytest.fixture
def settings(base_env: dict[str, str]):
    """Provide Settings built from BASE_ENV only (no YAML, no .env)."""
    return load_settings(env=base_env)


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("settings.yaml", {"fineract": {...}})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def session():
    s = requests.Session()
    yield s
    s.close()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        token_url=TOKEN_URL,
        username="mifos",
        password="password",
        client_id="community-app",
        client_secret="s3cret",
    )


@pytest.fixture
def auth(credentials: Credentials, session) -> AuthProvider:
    return AuthProvider(credentials, session, timeout=(1, 1))


@pytest.fixture
def waiter() -> RecordingWaiter:
    return RecordingWaiter()


class FakeSheet:
    def __init__(self, name: str, nrows: int) -> None:
        self.name = name
        self.nrows = nrows


class FakeBook:
    """The slice of xlrd.Book that the workbook module reads."""

    def __init__(self, sheets: list[FakeSheet]) -> None:
        self._sheets = sheets
        self.nsheets = len(sheets)
        self.released = False

    def sheet_by_index(self, index: int) -> FakeSheet:
        return self._sheets[index]

    def release_resources(self) -> None:
        self.released = True


def make_xlsx(sheets: dict[str, list[list[Any]]] | None = None) -> bytes:
    """Build an XLSX workbook in memory with openpyxl."""
    sheets = sheets or {
        "Offices": [
            ["Office Name", "Opened On"],
            ["Head Office", dt.date(2024, 1, 1)],
        ]
    }
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def build_xlsx():
    """Factory fixture wrapping make_xlsx."""
    return make_xlsx


@pytest.fixture
def build_xls(monkeypatch):
    """
    Factory fixture returning XLS-signed bytes that xlrd opens as a fake book.

    Usage:
        data = build_xls({"Offices": 3, "Lookup": 1})  # sheet name -> rows
    """
    books: dict[bytes, list[FakeSheet]] = {}
    real_open = xlrd.open_workbook

    def fake_open(filename=None, *, file_contents=None, **kwargs):
        if file_contents in books:
            return FakeBook(books[file_contents])
        return real_open(filename, file_contents=file_contents, **kwargs)

    monkeypatch.setattr(xlrd, "open_workbook", fake_open)

    def _create(sheets: dict[str, int] | None = None) -> bytes:
        if sheets is None:
            sheets = {"Offices": 2}
        data = OLE2_MAGIC + b"\x00" * 504 + f"book-{len(books)}".encode()
        books[data] = [FakeSheet(name, rows) for name, rows in sheets.items()]
        return data

    return _create


@pytest.fixture
def xls_bytes(build_xls) -> bytes:
    return build_xls()


@pytest.fixture
def xlsx_bytes() -> bytes:
    return make_xlsx()


@pytest.fixture
def templates_dir(tmp_test_dir: Path):
    """
    Factory fixture that writes template files under <tmp>/templates/data.

    Usage:
        root = templates_dir({"data/Offices.xls": xls_bytes})
    """

    def _create(files: dict[str, bytes]) -> Path:
        root = tmp_test_dir / "templates"
        (root / "data").mkdir(parents=True, exist_ok=True)
        for resource, data in files.items():
            path = root / resource
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return root

    return _create
