"""Configuration management for Tool Djinn.

Loads user settings from ~/.config/tooldjinn/config.cfg, falling back to a
.env file in the working directory.
Provides ToolSettings (binaries) and OutputBudgets (token budgets).
"""

import configparser
from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

# Default location for user configuration.
CONFIG_PATH = Path.home() / ".config" / "tooldjinn" / "config.cfg"
ENV_PATH = Path.cwd() / ".env"


@dataclass(frozen=True)
class OutputBudgets:
    """Token budgets used when rendering command output."""
    detail: int = 1200
    success_stdout: int = 220
    success_stderr: int = 120
    failure_stdout: int = 480
    failure_stderr: int = 480

    def preview_budgets(self, success: bool) -> tuple[int, int]:
        """Return (stdout, stderr) preview budgets for the given outcome."""
        if success:
            return self.success_stdout, self.success_stderr
        return self.failure_stdout, self.failure_stderr


@dataclass
class ToolSettings:
    git_binary: str = "git"
    dotnet_binary: str = "dotnet"
    budgets: OutputBudgets = field(default_factory=OutputBudgets)


def load_raw_config(path: Path = CONFIG_PATH, env_path: Optional[Path] = ENV_PATH) -> Dict[str, str]:
    """
    Load configuration values from the standard config path.
    Values are returned with lowercase keys for convenience.

    The .env file is only consulted when the config file does not exist.
    """
    data: Dict[str, str] = {}

    if path.exists():
        cfg = configparser.ConfigParser()
        cfg.read(path)
        if "DEFAULT" in cfg:
            data.update({k.lower(): v for k, v in cfg["DEFAULT"].items()})
        if "BUDGETS" in cfg:
            data.update({k.lower(): v for k, v in cfg["BUDGETS"].items()})
        return data

    if env_path is not None and env_path.exists():
        env_values = dotenv_values(env_path)
        data.update({k.lower(): v for k, v in env_values.items() if v is not None})

    return data


def _get_budget(raw: Dict[str, str], key: str, default: int) -> int:
    value = raw.get(key)
    if value is None or str(value).strip() == "":
        return default
    try:
        budget = int(str(value).strip())
    except ValueError:
        raise ValueError(f"Budget '{key}' must be an integer (got '{value}').")
    if budget <= 0:
        raise ValueError(f"Budget '{key}' must be positive (got {budget}).")
    return budget


def get_output_budgets(raw: Optional[Dict[str, str]] = None) -> OutputBudgets:
    """
    Build OutputBudgets from raw configuration values.
    Raises ValueError for non-integer or non-positive budgets.
    """
    raw = load_raw_config() if raw is None else raw
    defaults = OutputBudgets()

    detail_env = os.environ.get("TOOLDJINN_DETAIL_TOKENS")
    if detail_env is not None and detail_env.strip() != "":
        raw = {**raw, "detail_tokens": detail_env}

    return OutputBudgets(
        detail=_get_budget(raw, "detail_tokens", defaults.detail),
        success_stdout=_get_budget(raw, "success_stdout_tokens", defaults.success_stdout),
        success_stderr=_get_budget(raw, "success_stderr_tokens", defaults.success_stderr),
        failure_stdout=_get_budget(raw, "failure_stdout_tokens", defaults.failure_stdout),
        failure_stderr=_get_budget(raw, "failure_stderr_tokens", defaults.failure_stderr),
    )


def get_tool_settings(raw: Optional[Dict[str, str]] = None) -> ToolSettings:
    """Build ToolSettings from the raw config plus environment overrides."""
    raw = load_raw_config() if raw is None else raw

    git_binary = os.environ.get("TOOLDJINN_GIT_BINARY") or raw.get("git_binary", "").strip() or "git"
    dotnet_binary = (
        os.environ.get("TOOLDJINN_DOTNET_BINARY") or raw.get("dotnet_binary", "").strip() or "dotnet"
    )

    return ToolSettings(
        git_binary=git_binary,
        dotnet_binary=dotnet_binary,
        budgets=get_output_budgets(raw),
    )
