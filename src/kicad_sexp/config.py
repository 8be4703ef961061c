"""
Configuration file support for kicad-sexp.

Provides hierarchical configuration loading from:
1. Project config: .kicad-sexp.toml or kicad-sexp.toml in the project root
2. User config: ~/.config/kicad-sexp/config.toml

Project config overrides user config; CLI arguments override both.
"""

import logging
import sys
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from kicad_sexp.exceptions import ConfigError
from kicad_sexp.formatter import PRESETS, Rules, rules_from_preset
from kicad_sexp.parser import DEFAULT_MAX_DEPTH

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

# Config file names to search for in project directories
CONFIG_FILENAMES = [".kicad-sexp.toml", "kicad-sexp.toml"]

# User-level config path
USER_CONFIG_PATH = Path.home() / ".config" / "kicad-sexp" / "config.toml"

# All known config keys for validation
KNOWN_KEYS = {
    "format": {"preset", "indent", "rules"},
    "parse": {"max_depth"},
}


@dataclass
class FormatConfig:
    """Serializer layout settings."""

    preset: str = "none"
    indent: int = 2
    rules: dict[str, int] = field(default_factory=dict)

    def build_rules(self) -> Rules:
        """Preset rules with the custom rules applied on top."""
        rules = rules_from_preset(self.preset)
        rules.update(self.rules)
        return rules

    @property
    def indent_string(self) -> str:
        return " " * self.indent


@dataclass
class ParseConfig:
    """Parser settings."""

    max_depth: int = DEFAULT_MAX_DEPTH


@dataclass
class Config:
    """Merged configuration from all sources."""

    format: FormatConfig = field(default_factory=FormatConfig)
    parse: ParseConfig = field(default_factory=ParseConfig)

    # Track which file each setting came from
    _sources: dict = field(default_factory=dict, repr=False)

    @classmethod
    def load(cls, start_dir: Path | None = None) -> "Config":
        """
        Load configuration with precedence: project > user > defaults.

        Args:
            start_dir: Directory to start searching from (default: current directory)

        Returns:
            Merged configuration object
        """
        if start_dir is None:
            start_dir = Path.cwd()

        config = cls()
        sources: dict[str, str] = {}

        if USER_CONFIG_PATH.exists():
            user_data = _load_toml_file(USER_CONFIG_PATH)
            if user_data:
                _merge_config(config, user_data, str(USER_CONFIG_PATH), sources)

        project_config = _find_project_config(start_dir)
        if project_config:
            project_data = _load_toml_file(project_config)
            if project_data:
                _merge_config(config, project_data, str(project_config), sources)

        config._sources = sources
        return config

    def get_source(self, key: str) -> str:
        """Get the source file for a config key."""
        return self._sources.get(key, "default")


def _find_project_config(start_dir: Path) -> Path | None:
    """
    Find project config by walking up the directory tree.

    Stops at a .git directory or the filesystem root.
    """
    current = start_dir.resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        if (current / ".git").exists():
            break

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _load_toml_file(path: Path) -> dict[str, Any] | None:
    """
    Load a TOML file.

    Returns:
        Parsed TOML data, or None when no TOML parser is available

    Raises:
        ConfigError: If the file is unreadable or not valid TOML
    """
    if tomllib is None:
        warnings.warn(
            "tomli package not installed. Config file support requires 'pip install tomli' for Python < 3.11.",
            stacklevel=2,
        )
        return None

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}", context={"file": str(path)}) from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}", context={"file": str(path)}) from e

    logger.debug(f"Loaded config from {path}")
    return data


def _merge_config(
    config: Config, data: dict[str, Any], source: str, sources: dict[str, str]
) -> None:
    """
    Merge loaded config data into a Config object.

    Args:
        config: Config object to update
        data: Raw config data from TOML
        source: Source file path (for tracking)
        sources: Dict to update with source info

    Raises:
        ConfigError: If a known key has an invalid value
    """
    for key in data:
        if key not in KNOWN_KEYS:
            warnings.warn(f"Unknown config key '{key}' in {source}", stacklevel=3)

    if "format" in data:
        format_data = data["format"]
        _require_table(format_data, "format", source)
        _warn_unknown_keys(format_data, KNOWN_KEYS["format"], "format", source)

        if "preset" in format_data:
            preset = format_data["preset"]
            if preset not in PRESETS:
                raise ConfigError(
                    f"Unknown rules preset '{preset}'",
                    context={"file": source, "key": "format.preset"},
                    suggestions=[f"Use one of: {', '.join(PRESETS)}"],
                )
            config.format.preset = preset
            sources["format.preset"] = source
        if "indent" in format_data:
            config.format.indent = _non_negative_int(format_data["indent"], "format.indent", source)
            sources["format.indent"] = source
        if "rules" in format_data:
            rules_data = format_data["rules"]
            if not isinstance(rules_data, dict):
                raise ConfigError(
                    "format.rules must be a table of tag = arity",
                    context={"file": source, "key": "format.rules"},
                )
            for tag, arity in rules_data.items():
                config.format.rules[tag] = _non_negative_int(arity, f"format.rules.{tag}", source)
            sources["format.rules"] = source

    if "parse" in data:
        parse_data = data["parse"]
        _require_table(parse_data, "parse", source)
        _warn_unknown_keys(parse_data, KNOWN_KEYS["parse"], "parse", source)

        if "max_depth" in parse_data:
            max_depth = _non_negative_int(parse_data["max_depth"], "parse.max_depth", source)
            if max_depth == 0:
                raise ConfigError(
                    "parse.max_depth must be at least 1",
                    context={"file": source, "key": "parse.max_depth"},
                )
            config.parse.max_depth = max_depth
            sources["parse.max_depth"] = source


def _require_table(value: Any, section: str, source: str) -> None:
    if not isinstance(value, dict):
        raise ConfigError(
            f"[{section}] must be a table",
            context={"file": source, "key": section},
        )


def _non_negative_int(value: Any, key: str, source: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(
            f"{key} must be a non-negative integer, got {value!r}",
            context={"file": source, "key": key},
        )
    return value


def _warn_unknown_keys(data: dict[str, Any], known: set[str], section: str, source: str) -> None:
    """Warn about unknown keys in a config section."""
    for key in data:
        if key not in known:
            warnings.warn(f"Unknown config key '{section}.{key}' in {source}", stacklevel=4)


def generate_template() -> str:
    """
    Generate a template config file with all options documented.

    Returns:
        Template TOML string
    """
    return """# kicad-sexp configuration file
# Place as .kicad-sexp.toml in project root or ~/.config/kicad-sexp/config.toml for user defaults

[format]
# Rules preset: none, kicad
# preset = "none"

# Spaces per indentation level
# indent = 2

[format.rules]
# Children kept on the tag's line before the rest go one per line
# kicad_pcb = 2
# module = 1

[parse]
# Maximum list nesting depth
# max_depth = 10000
"""


def get_config_paths() -> dict[str, Path | None]:
    """
    Get paths to config files that would be loaded.

    Returns:
        Dict with 'user' and 'project' keys
    """
    project_config = _find_project_config(Path.cwd())

    return {
        "user": USER_CONFIG_PATH if USER_CONFIG_PATH.exists() else None,
        "project": project_config,
    }
