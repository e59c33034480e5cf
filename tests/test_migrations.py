"""Tests for scripts/run_migrations.py (no database needed)."""
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from scripts import run_migrations


class TestStatementParsing:

    def test_schema_file_statements(self):
        statements = run_migrations.load_statements()
        assert len(statements) == 3
        assert statements[0].startswith("CREATE TABLE IF NOT EXISTS locations")
        assert all("--" not in s and "/*" not in s for s in statements)

    def test_split_skips_blanks(self):
        sql = "/* header */ SELECT 1; -- note\n;\n SELECT 2;"
        assert run_migrations.split_statements(run_migrations.strip_comments(sql)) == [
            "SELECT 1", "SELECT 2",
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            run_migrations.load_statements(tmp_path / "nope.sql")


class TestRun:

    def test_dry_run_does_not_connect(self, capsys):
        with patch.object(run_migrations.psycopg2, "connect") as mock_connect:
            assert run_migrations.run(dry_run=True) == 3
        mock_connect.assert_not_called()
        assert "DRY-RUN" in capsys.readouterr().out

    def test_failure_rolls_back(self):
        conn = MagicMock()
        cur = conn.cursor.return_value.__enter__.return_value
        cur.execute.side_effect = psycopg2.Error("boom")
        with patch.object(run_migrations.psycopg2, "connect", return_value=conn):
            with pytest.raises(psycopg2.Error):
                run_migrations.run()
        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        conn.close.assert_called_once()
