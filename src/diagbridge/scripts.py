"""Diagnostic scripts as named, content-addressed external resources."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger("diagbridge")

DEFAULT_SCRIPTS_DIR = Path(__file__).resolve().parent / "powershell_scripts"


@dataclass(frozen=True)
class ScriptRef:
    """A script loaded once at startup."""

    name: str
    path: Path
    body: str
    digest: str

    @property
    def short_digest(self) -> str:
        return self.digest[:12]


@dataclass(frozen=True)
class ScriptLibrary:
    """Read-only collection of loaded scripts."""

    directory: Path
    scripts: dict[str, ScriptRef] = field(default_factory=dict)
    missing: tuple[str, ...] = ()

    def get(self, name: str) -> ScriptRef | None:
        return self.scripts.get(name)

    @classmethod
    def load(
        cls,
        directory: str | Path,
        names: Iterable[str],
        suffix: str = ".ps1",
    ) -> ScriptLibrary:
        """Load ``<name><suffix>`` for each name from ``directory``.

        Unreadable or missing scripts are recorded in ``missing`` and logged;
        the tools that need them report the problem when called.
        """
        root = Path(directory)
        scripts: dict[str, ScriptRef] = {}
        missing: list[str] = []
        for name in sorted(set(names)):
            path = root / f"{name}{suffix}"
            try:
                body = path.read_text(encoding="utf-8-sig")
            except OSError as exc:
                logger.warning("Script %s not loaded from %s: %s", name, path, exc)
                missing.append(name)
                continue
            digest = hashlib.sha256(body.encode("utf-8")).hexdigest()
            scripts[name] = ScriptRef(name=name, path=path, body=body, digest=digest)
            logger.info("Loaded script %s (%s, sha256 %s)", name, path, digest[:12])
        return cls(directory=root, scripts=scripts, missing=tuple(missing))


__all__ = ["DEFAULT_SCRIPTS_DIR", "ScriptLibrary", "ScriptRef"]
