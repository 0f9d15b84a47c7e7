"""Package URL (purl) parsing.

``pkg:<type>/<namespace>/<name>@<version>?<qualifiers>#<subpath>``

Parsing is purely syntactic: nothing here touches the network or disk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Mapping
from urllib.parse import quote, unquote

from detect_backdoor.core.errors import InvalidIdentifier

TYPE_PATTERN = re.compile(r"^[A-Za-z.+-][A-Za-z0-9.+-]*$")
QUALIFIER_KEY_PATTERN = re.compile(r"^[A-Za-z.\-_][A-Za-z0-9.\-_]*$")

# Ecosystems whose names are case-insensitive
LOWERCASE_NAMESPACE_AND_NAME = {"github", "bitbucket"}


def _path_part(value: str) -> str:
    # One cache path component; a leading dot is encoded so "..", "." and ".partial" never occur
    encoded = quote(value, safe="+-_.")
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    return encoded


@dataclass(frozen=True)
class TargetIdentifier:
    ecosystem: str
    name: str
    namespace: str | None = None
    version: str | None = None
    qualifiers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}), hash=False)
    subpath: str | None = None
    raw: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name

    def cache_key(self) -> PurePosixPath:
        """Relative directory for this exact ecosystem+namespace+name+version.

        Every namespace segment is a path level of its own and never holds a
        raw ``@``; the last level always does, so no key is a prefix of another.
        """
        levels = [_path_part(self.ecosystem)]
        if self.namespace:
            levels.extend(_path_part(seg) for seg in self.namespace.split("/"))
        levels.append(f"{_path_part(self.name)}@{_path_part(self.version or 'latest')}")
        return PurePosixPath(*levels)

    def __str__(self) -> str:
        out = f"pkg:{self.ecosystem}/"
        if self.namespace:
            out += "/".join(quote(seg, safe="") for seg in self.namespace.split("/")) + "/"
        out += quote(self.name, safe="")
        if self.version:
            out += "@" + quote(self.version, safe="+")
        if self.qualifiers:
            out += "?" + "&".join(f"{k}={quote(v, safe='/:')}" for k, v in sorted(self.qualifiers.items()))
        if self.subpath:
            out += "#" + self.subpath
        return out


def parse_target(raw: str) -> TargetIdentifier:
    """Parse a package URL into a ``TargetIdentifier``.

    Raises ``InvalidIdentifier`` when the string does not follow the
    package-url grammar or lacks an ecosystem or name.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidIdentifier(str(raw), "empty package URL")

    remainder = raw.strip()

    subpath = None
    if "#" in remainder:
        remainder, _, fragment = remainder.partition("#")
        segments = [unquote(s) for s in fragment.strip("/").split("/") if s and s not in {".", ".."}]
        subpath = "/".join(segments) or None

    qualifiers: dict[str, str] = {}
    if "?" in remainder:
        remainder, _, query = remainder.partition("?")
        for pair in query.split("&"):
            if not pair:
                continue
            key, sep, value = pair.partition("=")
            key = key.lower()
            if not sep or not QUALIFIER_KEY_PATTERN.match(key):
                raise InvalidIdentifier(raw, f"malformed qualifier '{pair}'")
            if value:
                qualifiers[key] = unquote(value)

    scheme, sep, remainder = remainder.partition(":")
    if not sep or scheme.lower() != "pkg":
        raise InvalidIdentifier(raw, "scheme must be 'pkg:'")

    remainder = remainder.strip("/")
    ptype, sep, remainder = remainder.partition("/")
    if not ptype:
        raise InvalidIdentifier(raw, "missing package type")
    if not sep:
        raise InvalidIdentifier(raw, "missing package name")
    if not TYPE_PATTERN.match(ptype):
        raise InvalidIdentifier(raw, f"invalid package type '{ptype}'")
    ecosystem = ptype.lower()

    # '@' only starts a version after the last '/', so '@scope/name' stays intact
    version = None
    at = remainder.rfind("@")
    if at > remainder.rfind("/"):
        remainder, version = remainder[:at], unquote(remainder[at + 1:]) or None
        if version is None:
            raise InvalidIdentifier(raw, "empty version after '@'")

    namespace_part, _, name_part = remainder.rstrip("/").rpartition("/")
    name = unquote(name_part).strip()
    if not name:
        raise InvalidIdentifier(raw, "missing package name")
    namespace_segments = [unquote(s) for s in namespace_part.split("/") if s]
    namespace = "/".join(namespace_segments) or None

    if ecosystem == "pypi":
        name = name.lower().replace("_", "-")
    if ecosystem in LOWERCASE_NAMESPACE_AND_NAME:
        name = name.lower()
        namespace = namespace.lower() if namespace else None

    return TargetIdentifier(
        ecosystem=ecosystem,
        name=name,
        namespace=namespace,
        version=version,
        qualifiers=MappingProxyType(qualifiers),
        subpath=subpath,
        raw=raw,
    )
