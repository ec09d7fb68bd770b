"""
Settings model — tunables read from the optional YAML config file.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Settings(BaseModel):
    """Report configuration. Every field has a working default."""

    model_config = ConfigDict(extra="forbid")

    boot_marker: str = "Booting Linux"       # must still be in the kernel ring buffer
    min_os_version: int = 9                  # Raspbian Stretch
    command_timeout: float = Field(default=120.0, gt=0)
    sample_interval: int = Field(default=3, ge=1)   # mpstat seconds between samples
    sample_count: int = Field(default=3, ge=1)
    wiringpi_known_good: str = "2.52"
    package_manager: str = "apt"
    groups: list[str] | None = None          # None = every group
    mask_secrets: bool = True
    scan_ports: bool = True                  # nmap service scan of local addresses

    @field_validator("groups")
    @classmethod
    def _normalize_groups(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return [g.strip().lower() for g in v if g.strip()]
