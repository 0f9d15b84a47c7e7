from detect_backdoor.domain.models import ErrorDescriptor, Finding, Report, TargetResult
from detect_backdoor.domain.purl import parse_target
from detect_backdoor.reporting.text import TextRenderer


def _finding(**overrides) -> Finding:
    data = dict(
        rule_id="BD9000",
        rule_name="eval call",
        description="Call to eval(",
        severity="important",
        confidence="high",
        file="lib/index.js",
        line=2,
        column=5,
        offset=17,
        excerpt="eval(",
    )
    data.update(overrides)
    return Finding(**data)


def _render(*results) -> str:
    return TextRenderer().render(Report(format="text", results=list(results))).decode("utf-8")


def test_clean_target_block():
    out = _render(
        TargetResult(target="pkg:npm/left-pad@1.3.0", identifier=parse_target("pkg:npm/left-pad@1.3.0"), findings=())
    )
    assert "pkg:npm/left-pad@1.3.0" in out
    assert "No findings." in out
    assert out.rstrip().endswith("Summary: 1 target(s), 0 failed, 0 finding(s)")


def test_finding_lines():
    out = _render(
        TargetResult(target="pkg:npm/evil@1.0.0", identifier=parse_target("pkg:npm/evil@1.0.0"), findings=(_finding(),))
    )
    assert "[important/high] BD9000 eval call" in out
    assert "lib/index.js:2:5" in out
    assert "| eval(" in out
    assert "(important=1)" in out


def test_location_without_line_is_file_only():
    out = _render(
        TargetResult(
            target="pkg:npm/evil@1.0.0",
            findings=(_finding(line=None, column=None, offset=None, excerpt=None, file="bin/blob"),),
        )
    )
    assert "    bin/blob\n" in out


def test_error_block():
    out = _render(
        TargetResult(target="not-a-valid-purl", error=ErrorDescriptor("InvalidIdentifier", "scheme must be 'pkg:'")),
        TargetResult(target="pkg:npm/left-pad@1.3.0", findings=()),
    )
    assert "--[ not-a-valid-purl ]--" in out
    assert "ERROR InvalidIdentifier: scheme must be 'pkg:'" in out
    assert out.index("not-a-valid-purl") < out.index("pkg:npm/left-pad@1.3.0")
    assert "Summary: 2 target(s), 1 failed, 0 finding(s)" in out


def test_media_type_is_plain_text():
    assert TextRenderer().media_type() == "text/plain"


def test_multiline_excerpt_stays_inside_the_block():
    excerpt = "exec(\r\n  atob(\n\n  'ZXZhbA==')"
    out = _render(TargetResult(target="pkg:npm/evil@1.0.0", findings=(_finding(excerpt=excerpt),)))

    block = out.split("--[ pkg:npm/evil@1.0.0 ]--\n", 1)[1].split("\n\n", 1)[0].splitlines()
    assert block[2:] == ["    | exec(", "    | atob(", "    | 'ZXZhbA==')"]
    assert all(line.startswith("  ") for line in block)
