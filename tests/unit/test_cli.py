"""
Unit tests for cli.py
"""

import json

import pytest

from bindflow.cli import main


@pytest.fixture
def spec_file(tmp_path):
    """Write a spec JSON file and return its path."""
    def _write(data):
        path = tmp_path / "spec.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def chain_spec():
    return {
        "dependencies": [
            {
                "source": "form.age",
                "target": "summary.age",
                "mechanism": "validate",
                "relationship": {"type": "javascript", "javascript": "source.value >= 0"},
            },
            {
                "source": "summary.age",
                "target": "report.text",
                "mechanism": "update",
                "relationship": {"type": "transform", "transform": "generate_summary"},
            },
        ],
    }


class TestCheck:
    """Test `bindflow check`."""

    def test_valid_spec(self, spec_file, chain_spec, capsys):
        code = main(["check", spec_file(chain_spec)])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert output["valid"] is True
        assert output["node_count"] == 3
        assert output["edge_count"] == 2
        assert output["update_order"] == ["form", "summary", "report"]

    def test_cyclic_spec(self, spec_file, capsys):
        data = [
            {"source": "a.x", "target": "b.y", "relationship": {"type": "javascript", "javascript": "1"}},
            {"source": "b.y", "target": "a.x", "relationship": {"type": "javascript", "javascript": "1"}},
        ]
        code = main(["check", spec_file(data)])
        output = json.loads(capsys.readouterr().out)

        assert code == 1
        assert output["valid"] is False
        assert "Circular dependency detected" in output["error"]

    def test_missing_file(self, tmp_path):
        assert main(["check", str(tmp_path / "missing.json")]) == 1


class TestRun:
    """Test `bindflow run`."""

    def test_propagates_writes(self, spec_file, chain_spec, capsys):
        code = main(["run", spec_file(chain_spec), "--set", "form.age=42"])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert output["ports"]["summary.age"] == 42
        assert output["ports"]["report.text"] == "42"
        assert [e["target_port_key"] for e in output["events"]] == ["summary.age", "report.text"]
        assert output["validation_state"]["can_proceed"] is True

    def test_validation_error_exit_code(self, spec_file, chain_spec, capsys):
        code = main(["run", spec_file(chain_spec), "--set", "form.age=-3"])
        output = json.loads(capsys.readouterr().out)

        assert code == 2
        assert output["errors"][0]["kind"] == "validation_failed"
        assert "summary.age" not in output["ports"]

    def test_init_reserved_port(self, spec_file, chain_spec, capsys):
        code = main([
            "run", spec_file(chain_spec),
            "--init", 'form._completed={"isCompleted": false}',
        ])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert output["validation_state"]["can_proceed"] is False
        assert output["validation_state"]["incomplete_widgets"] == ["form"]

    def test_plain_string_value(self, spec_file, capsys):
        data = {"dependencies": [
            {"source": "a.x", "target": "b.y", "relationship": {"type": "javascript", "javascript": "source.value + '!'"}},
        ]}
        main(["run", spec_file(data), "--set", "a.x=hello"])
        output = json.loads(capsys.readouterr().out)

        assert output["ports"]["b.y"] == "hello!"

    def test_bad_assignment(self, spec_file, chain_spec):
        with pytest.raises(SystemExit):
            main(["run", spec_file(chain_spec), "--set", "noequals"])
