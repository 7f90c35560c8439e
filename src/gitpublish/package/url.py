from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import PurePosixPath
from urllib.parse import urlsplit

_KNOWN_SCHEMES = {"http", "https", "ssh", "git", "file"}
# git@github.com:owner/project.git
_SCP_RE = re.compile(r"^(?:(?P<user>[\w.-]+)@)?(?P<host>[\w.-]+):(?P<path>(?!//)[^\s]+)$")


@dataclass(frozen=True)
class RepositoryUrl:
    """A normalized git remote location.

    ``scheme`` may carry a ``git+`` prefix (the form pip uses); it is dropped
    again whenever a URL is handed to git itself.
    """

    scheme: str
    netloc: str
    path: str

    @classmethod
    def from_string(cls, raw: str | None) -> RepositoryUrl | None:
        if not raw:
            return None
        raw = raw.strip()

        if raw.startswith("/"):
            return cls(scheme="file", netloc="", path=raw)

        if "://" in raw:
            parts = urlsplit(raw)
            base_scheme = parts.scheme.removeprefix("git+")
            if base_scheme not in _KNOWN_SCHEMES or not parts.path.strip("/"):
                return None
            if base_scheme != "file" and not parts.netloc:
                return None
            return cls(scheme=parts.scheme, netloc=parts.netloc, path=parts.path)

        match = _SCP_RE.match(raw)
        if match:
            user = match.group("user")
            netloc = f"{user}@{match.group('host')}" if user else match.group("host")
            return cls(scheme="ssh", netloc=netloc, path="/" + match.group("path").lstrip("/"))

        return None

    @property
    def project_name(self) -> str:
        return PurePosixPath(self.path.rstrip("/")).name.removesuffix(".git")

    def replace_protocol(self, scheme: str) -> RepositoryUrl:
        return replace(self, scheme=scheme)

    @property
    def clone_url(self) -> str:
        return str(self.replace_protocol(self.scheme.removeprefix("git+")))

    @property
    def pip_url(self) -> str:
        if self.scheme.startswith("git+"):
            return str(self)
        return str(self.replace_protocol(f"git+{self.scheme}"))

    def install_reference(self, package_name: str, ref: str) -> str:
        """A PEP 508 direct reference installing ``package_name`` at ``ref``."""
        return f"{package_name} @ {self.pip_url}@{ref}"

    def __str__(self) -> str:
        return f"{self.scheme}://{self.netloc}{self.path}"
