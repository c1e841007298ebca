"""
Configuration loader for taskmatch.
Merges packaged defaults with a user config.yaml and environment overrides.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from taskmatch.errors import ConfigError
from taskmatch.matchers import ExportSetting, MatcherType, TargetMatcher
from taskmatch.matchers.docker_label import DockerLabelMatcher
from taskmatch.matchers.service import ServiceMatcher
from taskmatch.matchers.task_definition import TaskDefinitionMatcher


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

def _check_regex(value: str) -> str:
    if value:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regex {value!r}: {e}")
    return value


class ExportConfig(BaseModel):
    job_name: str = ""
    metrics_path: str = "/metrics"
    metrics_ports: list[int] = Field(default_factory=list)

    @field_validator("metrics_ports")
    @classmethod
    def ports_in_range(cls, ports: list[int]) -> list[int]:
        for port in ports:
            if not 0 < port < 65536:
                raise ValueError(f"metrics port {port} out of range")
        return ports

    def export_setting(self, default_job: str) -> ExportSetting:
        return ExportSetting(
            job_name=self.job_name or default_job,
            metrics_path=self.metrics_path,
            metrics_ports=list(self.metrics_ports),
        )


class ServiceConfig(ExportConfig):
    name_pattern: str
    container_name_pattern: str = ""

    @field_validator("name_pattern", "container_name_pattern")
    @classmethod
    def patterns_compile(cls, value: str) -> str:
        return _check_regex(value)

    @model_validator(mode="after")
    def needs_ports(self) -> "ServiceConfig":
        if not self.metrics_ports:
            raise ValueError(f"service {self.name_pattern!r} has no metrics_ports")
        return self


class TaskDefinitionConfig(ExportConfig):
    arn_pattern: str
    container_name_pattern: str = ""

    @field_validator("arn_pattern", "container_name_pattern")
    @classmethod
    def patterns_compile(cls, value: str) -> str:
        return _check_regex(value)

    @model_validator(mode="after")
    def needs_ports(self) -> "TaskDefinitionConfig":
        if not self.metrics_ports:
            raise ValueError(f"task definition {self.arn_pattern!r} has no metrics_ports")
        return self


class DockerLabelConfig(BaseModel):
    port_label: str
    job_name_label: str = ""
    metrics_path_label: str = ""
    job_name: str = ""
    metrics_path: str = "/metrics"


class TaskMatchConfig(BaseModel):
    max_workers: int = Field(default=1, ge=1)
    job_name: str = ""
    services: list[ServiceConfig] = Field(default_factory=list)
    task_definitions: list[TaskDefinitionConfig] = Field(default_factory=list)
    docker_labels: list[DockerLabelConfig] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

_ENV_OVERRIDES = {
    "TASKMATCH_MAX_WORKERS": "max_workers",
    "TASKMATCH_JOB_NAME": "job_name",
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping, got {type(data).__name__}")
    return data


def load_config(config_path: Path | None = None) -> TaskMatchConfig:
    """
    Load config by merging:
      1. Built-in defaults (taskmatch/config.yaml)
      2. User overrides (config_path)
      3. Environment variable overrides
    """
    # 1. Built-in defaults
    base = _read_yaml(_DEFAULT_CONFIG_PATH)

    # 2. User overrides
    if config_path:
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        base = _deep_merge(base, _read_yaml(config_path))
        logger.debug(f"[CONFIG] Merged overrides from {config_path}")

    # 3. Env overrides
    for env_key, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value:
            base[field_name] = value

    try:
        return TaskMatchConfig(**base)
    except ValidationError as e:
        raise ConfigError(f"Invalid taskmatch config: {e}")


def build_matchers(config: TaskMatchConfig) -> dict[MatcherType, list[TargetMatcher]]:
    """Instantiate matchers per type; list position is the matcher index."""
    matchers: dict[MatcherType, list[TargetMatcher]] = {}

    for svc in config.services:
        matchers.setdefault(MatcherType.SERVICE, []).append(ServiceMatcher(
            name_pattern=svc.name_pattern,
            container_name_pattern=svc.container_name_pattern,
            export=svc.export_setting(config.job_name),
        ))

    for td in config.task_definitions:
        matchers.setdefault(MatcherType.TASK_DEFINITION, []).append(TaskDefinitionMatcher(
            arn_pattern=td.arn_pattern,
            container_name_pattern=td.container_name_pattern,
            export=td.export_setting(config.job_name),
        ))

    for dl in config.docker_labels:
        matchers.setdefault(MatcherType.DOCKER_LABEL, []).append(DockerLabelMatcher(
            port_label=dl.port_label,
            job_name_label=dl.job_name_label,
            metrics_path_label=dl.metrics_path_label,
            export=ExportSetting(job_name=dl.job_name or config.job_name, metrics_path=dl.metrics_path),
        ))

    logger.debug(
        "[CONFIG] Built matchers: "
        + ", ".join(f"{tpe.value}={len(ms)}" for tpe, ms in matchers.items())
    )
    return matchers
