"""Settings from environment variables.

A ``.env`` file in the working directory is loaded first; variables already
set in the environment win.

    INFLUX_URL        server URL (http://localhost:8086)
    INFLUX_DB         default database
    INFLUX_USER       user name for basic auth
    INFLUX_PASSWORD   password for basic auth
    INFLUX_UDP_HOST   UDP listener host (localhost)
    INFLUX_UDP_PORT   UDP listener port (8089)
    INFLUX_TEMPLATE   user template file, merged after the built-in one
    INFLUX_TIMEOUT    HTTP timeout in seconds (30)
    INFLUX_FZF        fzf executable (fzf)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping

from dotenv import find_dotenv, load_dotenv


@dataclass
class Settings:
    url: str = "http://localhost:8086"
    database: str = ""
    username: str | None = None
    password: str | None = None
    udp_host: str = "localhost"
    udp_port: int = 8089
    template_path: Path | None = None
    timeout: float = 30.0
    fzf: str = "fzf"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environ, or from os.environ after loading .env."""
        if environ is None:
            load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ

        template = environ.get("INFLUX_TEMPLATE")
        return cls(
            url=environ.get("INFLUX_URL", cls.url),
            database=environ.get("INFLUX_DB", ""),
            username=environ.get("INFLUX_USER") or None,
            password=environ.get("INFLUX_PASSWORD") or None,
            udp_host=environ.get("INFLUX_UDP_HOST", cls.udp_host),
            udp_port=_number(environ, "INFLUX_UDP_PORT", cls.udp_port, int),
            template_path=Path(template) if template else None,
            timeout=_number(environ, "INFLUX_TIMEOUT", cls.timeout, float),
            fzf=environ.get("INFLUX_FZF", cls.fzf),
        )


def _number(environ: Mapping[str, str], name: str, default: Any, kind: Callable[[str], Any]) -> Any:
    raw = environ.get(name)
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
