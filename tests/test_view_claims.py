"""
Tests for the rich claim viewer script.
"""

import json
import sys

import pytest

import view_claims
from src.registry import ClaimRegistry, ClaimStatus
from src.storage import SQLiteClaimStore


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "claims.db"
    registry = ClaimRegistry(SQLiteClaimStore(path), deployer="0xOwner", clock=lambda: 1_700_000_000)
    registry.submit_claim("USER123", 1500, caller="0xAlice")
    registry.submit_claim("OTHER", 2500, caller="0xAlice")
    registry.update_claim_status(2, ClaimStatus.APPROVED, caller="0xOwner")
    return path


def run_viewer(monkeypatch, capsys, *args):
    monkeypatch.setattr(sys, "argv", ["view_claims.py", *args])
    view_claims.main()
    return capsys.readouterr().out


def test_format_timestamp():
    assert view_claims.format_timestamp(0) == "1970-01-01 00:00:00"


def test_claims_table_rows(db_path):
    table = view_claims.make_claims_table(SQLiteClaimStore(db_path).list_all())
    assert table.row_count == 2


def test_list_filtered_by_status(db_path, monkeypatch, capsys):
    out = run_viewer(monkeypatch, capsys, "--db", str(db_path), "--status", "Approved")
    assert "Total: 1 claim(s)" in out
    assert "2,500" in out


def test_export_prints_claim_text(db_path, monkeypatch, capsys):
    out = run_viewer(monkeypatch, capsys, "--db", str(db_path), "1", "--export")
    data = json.loads(out)
    assert data["claimId"] == "1"
    assert data["status"] == "Submitted"


def test_stats(db_path, monkeypatch, capsys):
    out = run_viewer(monkeypatch, capsys, "--db", str(db_path), "--stats")
    assert "Next Claim ID" in out
    assert "0xOwner" in out


def test_missing_database(tmp_path, monkeypatch, capsys):
    out = run_viewer(monkeypatch, capsys, "--db", str(tmp_path / "none.db"))
    assert "No database found" in out
