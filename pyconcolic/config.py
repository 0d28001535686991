"""Configuration system for pyconcolic.
Supports TOML configuration files with project-level and user-level settings.
"""
from __future__ import annotations
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from pyconcolic.logging import ConcolicLogger, LogLevel, configure_logging, get_logger
CONFIG_FILES = [
    "pyconcolic.toml",
    ".pyconcolic.toml",
    "pyproject.toml",
]
DEFAULT_TIMEOUT_MS = 10_000
@dataclass
class SolverConfig:
    """Configuration for the constraint solver session."""
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_mutations: int | None = None
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "timeout_ms": self.timeout_ms,
            "max_mutations": self.max_mutations,
        }
@dataclass
class StageConfig:
    """Configuration for the tracing and mutation stages."""
    progress_file: str | None = None
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"progress_file": self.progress_file}
@dataclass
class OutputConfig:
    """Configuration for logging output."""
    level: str = "normal"
    color: bool = True
    log_file: str | None = None
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "level": self.level,
            "color": self.color,
            "log_file": self.log_file,
        }
    @property
    def log_level(self) -> LogLevel:
        return LogLevel.from_name(self.level)
@dataclass
class ConcolicConfig:
    """Main configuration for pyconcolic."""
    solver: SolverConfig = field(default_factory=SolverConfig)
    stages: StageConfig = field(default_factory=StageConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    project_root: Path | None = None
    config_file: Path | None = None
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "solver": self.solver.to_dict(),
            "stages": self.stages.to_dict(),
            "output": self.output.to_dict(),
        }
    def to_toml(self) -> str:
        """Generate TOML configuration string."""
        lines = ["[tool.pyconcolic]"]
        for section, values in self.to_dict().items():
            lines.append("")
            lines.append(f"[tool.pyconcolic.{section}]")
            for key, value in values.items():
                if value is None:
                    continue
                elif isinstance(value, bool):
                    lines.append(f"{key} = {str(value).lower()}")
                elif isinstance(value, str):
                    lines.append(f'{key} = "{value}"')
                else:
                    lines.append(f"{key} = {value}")
        return "\n".join(lines) + "\n"
def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find configuration file by walking up directory tree."""
    if start_dir is None:
        start_dir = Path.cwd()
    current = start_dir.resolve()
    while current != current.parent:
        for config_name in CONFIG_FILES:
            config_path = current / config_name
            if config_path.exists():
                return config_path
        current = current.parent
    home = Path.home()
    for config_name in [".pyconcolic.toml", "pyconcolic.toml"]:
        config_path = home / config_name
        if config_path.exists():
            return config_path
    return None
def load_config(
    config_path: Path | None = None,
    start_dir: Path | None = None,
) -> ConcolicConfig:
    """Load configuration from file or use defaults.
    Args:
        config_path: Explicit path to config file
        start_dir: Directory to start searching for config
    Returns:
        Loaded configuration
    """
    config = ConcolicConfig()
    if config_path is None:
        config_path = find_config_file(start_dir)
    if config_path is None or not config_path.exists():
        return config
    config.config_file = config_path
    config.project_root = config_path.parent
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        get_logger().warning(f"Failed to parse config file {config_path}: {e}")
        return config
    if config_path.name == "pyproject.toml":
        section = data.get("tool", {}).get("pyconcolic", {})
    else:
        section = data.get("tool", {}).get("pyconcolic", data)
    _apply_config(config, section)
    return config
def _apply_config(config: ConcolicConfig, data: dict[str, Any]) -> None:
    """Apply configuration data to config object."""
    if "solver" in data:
        solver_data = data["solver"]
        for key in ["timeout_ms", "max_mutations"]:
            if key in solver_data:
                setattr(config.solver, key, solver_data[key])
        if config.solver.timeout_ms <= 0:
            raise ValueError(f"solver.timeout_ms must be positive, got {config.solver.timeout_ms}")
    if "stages" in data:
        stage_data = data["stages"]
        if "progress_file" in stage_data:
            config.stages.progress_file = stage_data["progress_file"]
    if "output" in data:
        out_data = data["output"]
        for key in ["level", "color", "log_file"]:
            if key in out_data:
                setattr(config.output, key, out_data[key])
def generate_default_config() -> str:
    """Generate default configuration file content."""
    return ConcolicConfig().to_toml()
def init_config(directory: Path | None = None) -> Path:
    """Initialize a new configuration file in the given directory.
    Args:
        directory: Directory to create config in (default: current)
    Returns:
        Path to created config file
    """
    if directory is None:
        directory = Path.cwd()
    config_path = directory / "pyconcolic.toml"
    if config_path.exists():
        raise FileExistsError(f"Config file already exists: {config_path}")
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path
def configure_logging_from_config(config: ConcolicConfig) -> ConcolicLogger:
    """Install the global logger described by the ``[output]`` section.
    A relative ``log_file`` is resolved against the project root.
    """
    log_file = None
    if config.output.log_file:
        log_file = Path(config.output.log_file)
        if not log_file.is_absolute() and config.project_root is not None:
            log_file = config.project_root / log_file
    return configure_logging(
        level=config.output.log_level,
        color=config.output.color,
        file_path=log_file,
    )
__all__ = [
    "ConcolicConfig",
    "SolverConfig",
    "StageConfig",
    "OutputConfig",
    "DEFAULT_TIMEOUT_MS",
    "load_config",
    "find_config_file",
    "generate_default_config",
    "init_config",
    "configure_logging_from_config",
]
