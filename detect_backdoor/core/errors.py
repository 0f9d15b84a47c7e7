"""Exception hierarchy for oss-detect-backdoor.

Per-target errors (``InvalidIdentifier``, ``AcquisitionFailed``,
``AnalysisFailed``) are captured into the target's result and rendered in
the report. Configuration errors (``RulesetUnavailable``,
``UnsupportedFormat``, ``NoTargets``, ``UnknownEngine``,
``DownloadDirectoryUnavailable``) abort the run before any target is
processed.
"""


class DetectBackdoorError(Exception):
    """Base class for every error raised by this package."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class InvalidIdentifier(DetectBackdoorError):
    """The package reference is not a valid package URL."""

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"Invalid package URL '{raw}': {reason}")
        self.raw = raw
        self.reason = reason


class AcquisitionFailed(DetectBackdoorError):
    """The package could not be located, downloaded or extracted."""

    def __init__(self, target: str, reason: str) -> None:
        super().__init__(f"Unable to acquire {target}: {reason}")
        self.target = target
        self.reason = reason


class RulesetUnavailable(DetectBackdoorError):
    """The custom ruleset directory is missing or holds no loadable rules."""

    def __init__(self, rules_directory: str, reason: str) -> None:
        super().__init__(f"Ruleset unavailable at {rules_directory}: {reason}")
        self.rules_directory = rules_directory
        self.reason = reason


class AnalysisFailed(DetectBackdoorError):
    """The rule engine could not analyze one target."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Analysis of {path} failed: {reason}")
        self.path = path
        self.reason = reason


class UnsupportedFormat(DetectBackdoorError):
    def __init__(self, value: str, supported: list[str]) -> None:
        super().__init__(f"Unsupported output format '{value}'. Supported: {', '.join(supported)}")
        self.value = value
        self.supported = supported


class UnknownEngine(DetectBackdoorError):
    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(f"Unknown rule engine '{name}'. Available: {', '.join(available)}")
        self.name = name
        self.available = available


class NoTargets(DetectBackdoorError):
    def __init__(self) -> None:
        super().__init__("No target provided; nothing to analyze.")


class DownloadDirectoryUnavailable(DetectBackdoorError):
    """The directory packages are acquired into cannot be created or written."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Download directory unavailable at {path}: {reason}")
        self.path = path
        self.reason = reason
