"""
Configuration management for packflow.

This module loads the YAML task document, normalises the accepted entry
shapes into flat task dictionaries and validates them with the pydantic
task models.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .errors import ConfigurationError
from .models import TASK_KINDS, PackflowConfig, Task
from .paths import ResolvedContext

logger = logging.getLogger(__name__)

# 'command' is the key used by the original packager configs
TASK_LIST_KEYS = ("tasks", "command")


def _normalize_entry(index: int, entry: Any) -> Dict[str, Any]:
    """Turn one task declaration into a flat dict carrying ``kind``.

    Accepted shapes::

        - copy: {source: a, destination: b}
        - run: "make dist"
        - {kind: replace, target: f, pattern: x, replacement: y}
    """
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Task {index}: expected a mapping, got {type(entry).__name__}", detail=index)

    if "kind" in entry:
        return dict(entry)

    if len(entry) != 1:
        raise ConfigurationError(
            f"Task {index}: expected exactly one of {', '.join(TASK_KINDS)} or a 'kind' field", detail=index
        )
    kind, body = next(iter(entry.items()))
    if kind not in TASK_KINDS:
        raise ConfigurationError(f"Task {index}: unknown task kind '{kind}'", detail=index)
    if kind == "run" and isinstance(body, str):
        body = {"command": body}
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ConfigurationError(f"Task {index}: '{kind}' expects a mapping of fields", detail=index)
    return {"kind": kind, **body}


def _format_validation_error(e: ValidationError) -> str:
    lines = []
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        lines.append(f"{loc}: {err.get('msg')}")
    return "; ".join(lines)


def parse_tasks(raw_config: Any) -> List[Task]:
    """Validate an already-decoded document and return its ordered task list."""
    if raw_config is None:
        raise ConfigurationError("Configuration document is empty")
    if isinstance(raw_config, list):
        entries = raw_config
    elif isinstance(raw_config, dict):
        key = next((k for k in TASK_LIST_KEYS if k in raw_config), None)
        if key is None:
            raise ConfigurationError(f"Missing required section: {TASK_LIST_KEYS[0]}")
        unknown = set(raw_config) - {key}
        if unknown:
            raise ConfigurationError(f"Unknown top-level keys: {', '.join(sorted(map(str, unknown)))}")
        entries = raw_config[key] or []
    else:
        raise ConfigurationError("Configuration must be a mapping or a list of tasks")

    if not isinstance(entries, list):
        raise ConfigurationError("Task section must be a list")

    normalized = [_normalize_entry(i, entry) for i, entry in enumerate(entries)]
    try:
        config = PackflowConfig.model_validate({"tasks": normalized})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid task declaration: {_format_validation_error(e)}") from e
    return list(config.tasks)


class ConfigurationLoader:
    """YAML configuration file loader and validator."""

    def __init__(self, config_path: Union[str, Path]):
        """Initialize configuration loader."""
        self.config_path = Path(config_path)
        self.config_dir = self.config_path.absolute().parent

    def load_tasks(self) -> List[Task]:
        """Load and validate the YAML document."""
        logger.info(f"Loading configuration from {self.config_path}")
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read configuration {self.config_path}: {e.strerror or e}", detail=str(self.config_path)
            ) from e
        except UnicodeDecodeError as e:
            raise ConfigurationError(
                f"Configuration {self.config_path} is not valid UTF-8", detail=str(self.config_path)
            ) from e
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in {self.config_path}: {e}", detail=str(self.config_path)
            ) from e

        tasks = parse_tasks(raw_config)
        logger.info(f"Configuration loaded: {len(tasks)} task(s)")
        return tasks

    def resolve_context(self, workdir: Optional[Union[str, Path]] = None) -> ResolvedContext:
        """Base directory for the run: ``workdir`` if given, else the config's directory."""
        if workdir is not None and not Path(workdir).is_dir():
            raise ConfigurationError(f"Working directory does not exist: {workdir}", detail=str(workdir))
        base = workdir if workdir is not None else self.config_dir
        return ResolvedContext.create(config_path=self.config_path, workdir=base)
