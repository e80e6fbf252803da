from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Container runtime; empty means docker.from_env() (honours DOCKER_HOST)
    docker_host: str = os.getenv("REG_DOCKER_HOST", "")

    # Classification. A non-empty container name selects "name" mode.
    container_name: str = os.getenv("REG_CONTAINER", "")
    cname: str = os.getenv("REG_CNAME", "")
    name_label: str = os.getenv("REG_NAME_LABEL", "dns.name")
    service_suffix: str = os.getenv("REG_SERVICE_SUFFIX", ".service")
    domain: str = os.getenv("REG_DOMAIN", "discovery")

    # Instance metadata
    metadata_address: str = os.getenv("REG_METADATA", "169.254.169.254")
    metadata_path: str = os.getenv("REG_METADATA_PATH", "latest/meta-data/public-hostname")
    metadata_timeout_s: int = _env_int("REG_METADATA_TIMEOUT_S", 2)

    # Route 53
    region: str = os.getenv("REG_REGION", "us-east-1")
    zone_id: str = os.getenv("REG_ZONE", "")
    record_type: str = os.getenv("REG_RECORD_TYPE", "auto")  # auto|A|CNAME
    ttl: int = _env_int("REG_TTL", 5)
    weight: int = _env_int("REG_WEIGHT", 50)

    # Liveness / activity API
    listen: str = os.getenv("REG_LISTEN", "0.0.0.0:8080")
    history_size: int = _env_int("REG_HISTORY_SIZE", 200)

    sync_on_start: bool = _env_bool("REG_SYNC_ON_START", True)
    log_level: str = os.getenv("REG_LOG_LEVEL", "INFO")

    @property
    def mode(self) -> str:
        return "name" if self.container_name else "label"

    def listen_address(self) -> tuple[str, int]:
        host, _, port = self.listen.rpartition(":")
        return host or "0.0.0.0", int(port)

    def validate(self) -> None:
        if not self.zone_id:
            raise ValueError("A Route 53 hosted zone id is required (REG_ZONE / --zone).")
        if self.mode == "name" and not self.cname:
            raise ValueError("Watching a single container requires a record name (REG_CNAME / --cname).")
        if self.mode == "label" and not self.domain:
            raise ValueError("Label mode requires a domain (REG_DOMAIN / --domain).")
        if self.record_type not in {"auto", "A", "CNAME"}:
            raise ValueError("record_type must be one of auto|A|CNAME.")
        if not 0 <= self.weight <= 255:
            raise ValueError("weight must be between 0 and 255.")
        if self.ttl < 0:
            raise ValueError("ttl must not be negative.")


settings = Settings()
