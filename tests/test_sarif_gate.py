import json

from scripts.sarif_gate import count_failed_targets, count_levels, main


def _report(*runs):
    return {"version": "2.1.0", "runs": list(runs)}


def _run(levels=(), ok=True):
    return {
        "invocations": [{"executionSuccessful": ok}],
        "results": [{"ruleId": "BD9000", "level": lvl} for lvl in levels],
    }


def test_count_levels():
    counts = count_levels(_report(_run(["error", "warning"]), _run(["error", "note"])))
    assert counts == {"error": 2, "warning": 1, "note": 1}


def test_count_failed_targets():
    assert count_failed_targets(_report(_run(), _run(ok=False))) == 1


def test_gate_passes_clean_report(tmp_path, capsys):
    p = tmp_path / "scan.sarif"
    p.write_text(json.dumps(_report(_run(), _run(["note"]))))
    assert main(["--report", str(p)]) == 0
    assert "[gate] PASSED" in capsys.readouterr().out


def test_gate_fails_on_errors(tmp_path):
    p = tmp_path / "scan.sarif"
    p.write_text(json.dumps(_report(_run(["error"]))))
    assert main(["--report", str(p)]) == 1
    assert main(["--report", str(p), "--max_errors", "1"]) == 0


def test_gate_fails_on_failed_target_unless_allowed(tmp_path):
    p = tmp_path / "scan.sarif"
    p.write_text(json.dumps(_report(_run(ok=False))))
    assert main(["--report", str(p)]) == 1
    assert main(["--report", str(p), "--allow_failed_targets"]) == 0


def test_gate_unreadable_report(tmp_path):
    assert main(["--report", str(tmp_path / "missing.sarif")]) == 2
