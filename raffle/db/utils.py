import os
from pathlib import Path
from typing import Mapping, Optional


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Resolve 'sqlite:///./relative/path' to an absolute sqlite:/// URL.

    Keeps other URL forms (including in-memory SQLite) unchanged.
    """
    prefix = "sqlite:///./"
    if not url.startswith(prefix):
        return url
    rel = url[len(prefix) :]
    return f"sqlite:///{(project_root / rel).resolve()}"


def configured_database_url(
    project_root: Path,
    default: str = "sqlite:///./raffle.db",
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Return the ``DB_URL`` from ``environ`` (or ``os.environ``) resolved for SQLite."""
    env = os.environ if environ is None else environ
    return resolve_sqlite_url(env.get("DB_URL") or default, project_root)
