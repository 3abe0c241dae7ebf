"""Configuration management - loads settings from .env and environment variables."""

from __future__ import annotations

import getpass
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable


def _load_dotenv(path: Path | None = None) -> None:
    """Minimal .env loader (avoids external dependency)."""
    candidates = [
        path,
        Path.cwd() / ".env",
        Path(__file__).resolve().parents[2] / ".env",
    ]
    env_path = None
    for candidate in candidates:
        if candidate and candidate.exists():
            env_path = candidate
            break
    if env_path is None:
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, _, value = line.partition("=")
        key, value = key.strip(), value.strip()
        if key and key not in os.environ:
            os.environ[key] = value


@dataclass
class VCenterConfig:
    hosts: list[str] = field(default_factory=list)
    port: int = 443
    username: str = ""
    password: str = ""
    disable_ssl: bool = True


@dataclass
class OutputConfig:
    output_dir: Path = field(default_factory=Path.cwd)


@dataclass
class AppConfig:
    vcenter: VCenterConfig = field(default_factory=VCenterConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


@dataclass(frozen=True)
class Credential:
    username: str
    password: str


def _split_hosts(raw: str) -> list[str]:
    return [h.strip() for h in raw.split(",") if h.strip()]


def load_config(env_file: Path | None = None) -> AppConfig:
    """Load configuration from environment / .env file."""
    _load_dotenv(env_file)

    vcenter = VCenterConfig(
        hosts=_split_hosts(os.getenv("VCENTER_HOSTS", "")),
        port=int(os.getenv("VCENTER_PORT", "443")),
        username=os.getenv("VCENTER_USER", ""),
        password=os.getenv("VCENTER_PASSWORD", ""),
        disable_ssl=os.getenv("VCENTER_DISABLE_SSL", "true").lower() == "true",
    )

    output = OutputConfig(
        output_dir=Path(os.getenv("ASSESSMENT_OUTPUT_DIR", "") or Path.cwd()),
    )

    return AppConfig(vcenter=vcenter, output=output)


def resolve_credential(
    cfg: VCenterConfig,
    prompt_user: Callable[[str], str] = input,
    prompt_password: Callable[[str], str] = getpass.getpass,
) -> Credential:
    """Return a complete credential, prompting once for whatever is missing."""
    username = cfg.username or prompt_user("vCenter username: ").strip()
    password = cfg.password or prompt_password(f"Password for {username}: ")
    if not username or not password:
        raise ValueError("vCenter username and password are required")
    return Credential(username=username, password=password)
