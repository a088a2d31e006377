"""
Integration tests for the command-line interface.
"""

import json

import pytest

from catalog_sync.cli.refresh_cli import build_parser, main

pytestmark = pytest.mark.integration


def _json_output(out: str) -> dict:
    """The command's pretty-printed JSON document (log lines may surround it)"""
    document, _ = json.JSONDecoder().raw_decode(out, out.index("{\n"))
    return document


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in ("LEGACY_API_URL", "LEGACY_API_KEY", "EDGE_CACHE_BACKEND", "CLASSIFICATION_RULES_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestClassifyCommand:
    """Tests for the classify dry run"""

    def test_classify_export(self, tmp_path, legacy_records, capsys):
        export = tmp_path / "apps.json"
        export.write_text(json.dumps({"apps": legacy_records}))

        exit_code = main(["classify", "--input", str(export)])

        assert exit_code == 0
        report = _json_output(capsys.readouterr().out)
        assert report["records"] == 9
        assert report["products"] == 5
        assert report["bucketCounts"] == {"wholeSchool": 2, "elementary": 1, "middleSchool": 1, "highSchool": 1}
        assert report["orphans"] == ["Orphaned Tool"]
        assert [s["reason"] for s in report["skipped"]] == ["duplicate", "inactive", "malformed", "malformed"]

    def test_custom_rules(self, tmp_path, capsys):
        rules = tmp_path / "rules.yaml"
        rules.write_text("sub_units:\n  - {key: north, aliases: [north]}\n  - {key: south, aliases: [south]}\n")
        export = tmp_path / "apps.json"
        export.write_text(json.dumps([{"product": "Kami", "division": "North"}]))

        exit_code = main(["classify", "--input", str(export), "--rules", str(rules)])

        assert exit_code == 0
        assert _json_output(capsys.readouterr().out)["bucketCounts"] == {"wholeSchool": 0, "north": 1, "south": 0}

    def test_missing_input(self, tmp_path):
        assert main(["classify", "--input", str(tmp_path / "nope.json")]) == 1

    def test_unreadable_input(self, tmp_path):
        export = tmp_path / "apps.json"
        export.write_text("not json")

        assert main(["classify", "--input", str(export)]) == 1


class TestOtherCommands:
    """Tests for refresh, show and argument handling"""

    def test_no_command(self):
        assert main([]) == 1

    def test_refresh_without_source_fails(self, capsys):
        """Test a refresh with no legacy API configured exits non-zero with a structured failure"""
        exit_code = main(["refresh"])

        assert exit_code == 1
        body = _json_output(capsys.readouterr().out)
        assert body["success"] is False
        assert body["errorType"] == "configuration_error"

    def test_show_empty_snapshot(self, capsys):
        exit_code = main(["show", "snapshot"])

        assert exit_code == 0
        body = _json_output(capsys.readouterr().out)
        assert body["statusCode"] == 404
        assert body["body"]["error"] == "not populated"

    def test_parser(self):
        args = build_parser().parse_args(["serve", "--port", "9000"])
        assert args.command == "serve"
        assert args.port == 9000
