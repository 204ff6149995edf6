"""
Exelook Configuration Management
=================================

Configuration for the exelook engine and CLI using Python dataclasses
and TOML-based persistence.

Sections of ``exelook.toml``::

    [global]
    log_level = "INFO"
    log_file = "exelook.log"
    log_json = true

    [lookup]
    max_file_size = 268435456

    [export]
    output_dir = "icons"
    overwrite = false

References:
    - Wiggins, A. (2011). The Twelve-Factor App. https://12factor.net/
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# ---------------------------------------------------------------------------
# Default configuration file, looked up in the working directory
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_NAME: str = "exelook.toml"


# ============================ Sections ======================================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Logging verbosity and general operational parameters."""

    log_level: str = "INFO"
    log_file: str = ""  # empty disables file logging
    log_json: bool = False
    debug: bool = False


@dataclass(frozen=False, slots=True)
class LookupConfig:
    """Limits applied before a file is mapped."""

    max_file_size: int = 268_435_456  # 256 MiB


@dataclass(frozen=False, slots=True)
class ExportConfig:
    """Where ``exelook extract`` writes icons."""

    output_dir: str = "icons"
    overwrite: bool = False


# ============================ Master Config =================================


@dataclass(frozen=False, slots=True)
class ExelookConfig:
    """Master configuration aggregating all sections.

    Usage:
        >>> config = ExelookConfig.load()                  # ./exelook.toml
        >>> config = ExelookConfig.load("custom.toml")     # explicit path
        >>> config.lookup.max_file_size
        268435456
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    lookup: LookupConfig = field(default_factory=LookupConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def load(cls, path: str | Path | None = None) -> ExelookConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``exelook.toml`` in the
        current working directory.  Missing keys fall back to dataclass
        defaults.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
            tomllib.TOMLDecodeError: The file is not valid TOML.
        """
        config_path = Path(path) if path is not None else Path.cwd() / _DEFAULT_CONFIG_NAME

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            lookup=cls._build_section(LookupConfig, raw.get("lookup", {})),
            export=cls._build_section(ExportConfig, raw.get("export", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares.

        Unknown keys in the TOML source are ignored.
        """
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)
