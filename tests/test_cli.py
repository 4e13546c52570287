"""
Tests for the registry command-line interface.
"""

import json

import pytest

from src.registry import hash_customer_id
from src.registry.cli import main
from src.utils.config import get_settings


@pytest.fixture
def db_args(tmp_path, monkeypatch):
    monkeypatch.setenv("REGISTRY_OWNER_ID", "0xOwner")
    get_settings.cache_clear()
    yield ["--db", str(tmp_path / "claims.db")]
    get_settings.cache_clear()


def run(capsys, args):
    code = main(args)
    captured = capsys.readouterr()
    return code, captured.out.strip(), captured.err.strip()


def test_submit_update_and_query(db_args, capsys):
    code, out, _ = run(capsys, db_args + ["--caller", "0xAlice", "submit", "USER123", "1000"])
    assert code == 0
    assert out == "1"

    code, out, _ = run(capsys, db_args + ["update-status", "1", "Approved"])
    assert code == 0
    assert "Approved" in out

    code, out, _ = run(capsys, db_args + ["get", "1"])
    data = json.loads(out)
    assert data["customer_id_hash"] == hash_customer_id("USER123")
    assert data["amount"] == "1000"
    assert data["status"] == "Approved"

    code, out, _ = run(capsys, db_args + ["verify", "1", "USER123"])
    assert out == "true"

    code, out, _ = run(capsys, db_args + ["list-customer", "USER123"])
    assert [c["claimId"] for c in json.loads(out)] == ["1"]


def test_errors_exit_nonzero(db_args, capsys):
    run(capsys, db_args + ["--caller", "0xAlice", "submit", "USER123", "5"])

    code, _, err = run(capsys, db_args + ["--caller", "0xAlice", "update-status", "1", "Approved"])
    assert code == 1
    assert "Unauthorized" in err

    code, _, err = run(capsys, db_args + ["submit", "USER123", "0"])
    assert code == 1
    assert "InvalidAmount" in err

    code, _, err = run(capsys, db_args + ["serialize", "42"])
    assert code == 1
    assert "ClaimNotFound" in err


def test_ownership_commands(db_args, capsys):
    code, out, _ = run(capsys, db_args + ["owner"])
    assert out == "0xOwner"

    run(capsys, db_args + ["transfer-ownership", "0xNext"])
    code, out, _ = run(capsys, db_args + ["owner"])
    assert out == "0xNext"

    code, out, _ = run(capsys, db_args + ["--caller", "0xNext", "renounce-ownership"])
    assert code == 0
    code, out, _ = run(capsys, db_args + ["owner"])
    assert out == "None"
