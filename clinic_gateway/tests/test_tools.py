"""Tests for the command line tools: the API smoke test and init_practice.py."""

import os
import sqlite3
import subprocess
import sys
from pathlib import Path

from tools import smoke_test

REPO_ROOT = Path(__file__).resolve().parents[2]


class TestSmokeTool:
    def test_unauthenticated_run_passes(self, client):
        results = smoke_test.run_smoke_tests("http://testserver", session=client)

        failed = [r for r in results if not r["success"]]
        assert failed == []
        by_path = {r["path"]: r for r in results}
        assert by_path["/users"]["actual"] == 401
        assert by_path["/auth/login"]["actual"] == 405
        assert by_path["/health"]["actual"] == 200

    def test_authenticated_run_passes(self, client, practice):
        results = smoke_test.run_smoke_tests(
            "http://testserver/", token=practice["access_token"], session=client
        )

        assert all(r["success"] for r in results), [r for r in results if not r["success"]]
        assert {r["path"] for r in results if r["auth"]} == set(smoke_test.PROTECTED_ROUTES)

    def test_mismatch_is_reported(self, client, capsys):
        results = smoke_test.run_smoke_tests(
            "http://testserver", token="not-a-real-token", session=client
        )

        smoke_test.print_report(results)

        assert not any(r["success"] for r in results if r["auth"])
        out = capsys.readouterr().out
        assert "got 401, expected 200" in out

    def test_parse_args_defaults(self, monkeypatch):
        monkeypatch.setenv("BASE_URL", "http://gateway:9000")
        monkeypatch.delenv("JWT_TOKEN", raising=False)

        args = smoke_test.parse_args([])

        assert args.base_url == "http://gateway:9000"
        assert args.token == ""
        assert args.timeout == 5.0


def _run_init(tmp_path, *extra, password="owner-password-123"):
    env = {**os.environ}
    if password is None:
        env.pop("PRACTICE_OWNER_PASSWORD", None)
    else:
        env["PRACTICE_OWNER_PASSWORD"] = password
    return subprocess.run(
        [
            sys.executable,
            str(REPO_ROOT / "tools" / "init_practice.py"),
            "--practice",
            "Test Counselling",
            "--email",
            "owner@test-counselling.example",
            "--first-name",
            "Terry",
            "--last-name",
            "Tester",
            "--db",
            str(tmp_path / "init.db"),
            *extra,
        ],
        env=env,
        capture_output=True,
        text=True,
        cwd=str(REPO_ROOT),
    )


class TestInitPractice:
    def test_creates_practice(self, tmp_path):
        result = _run_init(tmp_path)

        assert result.returncode == 0, f"Script failed: {result.stderr}"
        assert "PRACTICE READINESS REPORT" in result.stdout
        assert "STATUS: READY" in result.stdout

        conn = sqlite3.connect(tmp_path / "init.db")
        try:
            tenants = conn.execute("SELECT practice_name FROM tenants").fetchall()
            pages = conn.execute("SELECT COUNT(*) FROM page_permissions").fetchone()[0]
        finally:
            conn.close()
        assert tenants == [("Test Counselling",)]
        assert pages == 6

    def test_missing_password(self, tmp_path):
        result = _run_init(tmp_path, password=None)

        assert result.returncode == 2
        assert "PRACTICE_OWNER_PASSWORD" in result.stderr

    def test_second_run_conflicts(self, tmp_path):
        assert _run_init(tmp_path).returncode == 0

        result = _run_init(tmp_path)

        assert result.returncode == 3
        assert "already exists" in result.stderr
