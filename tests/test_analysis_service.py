from pathlib import Path

import pytest

from detect_backdoor.core.errors import AnalysisFailed, RulesetUnavailable
from detect_backdoor.engines.base import RawMatch, RuleEngine
from detect_backdoor.engines.yara_engine import YaraEngine
from detect_backdoor.services.analysis_service import AnalysisService


class StubEngine(RuleEngine):
    def __init__(self, matches):
        self.matches = matches
        self.calls = []

    def name(self):
        return "stub"

    def rule_files(self, rules_directory: Path):
        return sorted(rules_directory.glob("*.rule"))

    def scan(self, root, rules_directory, disable_default_rules=True):
        self.calls.append(disable_default_rules)
        return self.matches


def test_missing_ruleset_directory(tmp_path):
    svc = AnalysisService(YaraEngine())
    with pytest.raises(RulesetUnavailable, match="does not exist"):
        svc.ensure_ruleset(tmp_path / "nope")


def test_ruleset_path_is_a_file(tmp_path):
    f = tmp_path / "rules.yar"
    f.write_text("")
    with pytest.raises(RulesetUnavailable, match="not a directory"):
        AnalysisService(YaraEngine()).ensure_ruleset(f)


def test_ruleset_without_rule_files(tmp_path):
    (tmp_path / "README.md").write_text("no rules here")
    with pytest.raises(RulesetUnavailable, match="no rule files"):
        AnalysisService(YaraEngine()).ensure_ruleset(tmp_path)


def test_default_rules_are_always_disabled(tmp_path):
    (tmp_path / "a.rule").write_text("x")
    engine = StubEngine([])
    AnalysisService(engine).analyze(tmp_path, tmp_path)
    assert engine.calls == [True]


def test_engine_order_is_preserved(tmp_path):
    rules = tmp_path / "rules"
    rules.mkdir()
    (rules / "a.rule").write_text("x")
    src = tmp_path / "src"
    src.mkdir()
    matches = [
        RawMatch(engine="stub", rule_id=f"R{i}", rule_name=f"rule {i}", file=str(src / "z.js"), line=10 - i)
        for i in range(5)
    ]

    findings = AnalysisService(StubEngine(matches)).analyze(src, rules)

    assert [f.rule_id for f in findings] == ["R0", "R1", "R2", "R3", "R4"]
    assert all(f.file == "z.js" for f in findings)


def test_missing_source_path(tmp_path):
    (tmp_path / "a.rule").write_text("x")
    with pytest.raises(AnalysisFailed, match="path does not exist"):
        AnalysisService(StubEngine([])).analyze(tmp_path / "gone", tmp_path)


def test_yara_findings_for_eval(tmp_path, rules_dir):
    src = tmp_path / "src"
    src.mkdir()
    (src / "index.js").write_text("let a = 1;\neval(a);\n")

    findings = AnalysisService(YaraEngine()).analyze(src, rules_dir)

    assert len(findings) == 1
    f = findings[0]
    assert (f.rule_id, f.file, f.line, f.column) == ("BD9000", "index.js", 2, 1)
    assert f.severity == "important"
    assert f.confidence == "high"
    assert f.excerpt == "eval("
