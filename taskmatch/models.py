"""
taskmatch data model.

Tasks and containers come from discovery and are validated with pydantic.
Match records are plain dataclasses: the filter builds and mutates them
while merging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from taskmatch.matchers import MatcherType


# ---------------------------------------------------------------------------
# Discovered workloads
# ---------------------------------------------------------------------------

class PortMapping(BaseModel):
    container_port: int
    host_port: int | None = None


class Container(BaseModel):
    name: str
    image: str = ""
    docker_labels: dict[str, str] = Field(default_factory=dict)
    port_mappings: list[PortMapping] = Field(default_factory=list)

    def host_port(self, container_port: int) -> int:
        """Mapped host port for ``container_port``, or the port itself."""
        for mapping in self.port_mappings:
            if mapping.container_port == container_port and mapping.host_port:
                return mapping.host_port
        return container_port


class Task(BaseModel):
    task_arn: str
    task_definition_arn: str = ""
    service_name: str | None = None
    private_ip: str | None = None
    containers: list[Container] = Field(default_factory=list)


def load_tasks(path: Path) -> list[Task]:
    """
    Load tasks from a YAML or JSON file.

    Accepts either a top-level list or a mapping with a ``tasks`` key.
    """
    try:
        with open(path, "r") as f:
            data: Any = yaml.safe_load(f) or []
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}")
    if isinstance(data, dict):
        data = data.get("tasks") or []
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of tasks in {path}, got {type(data).__name__}")
    return [Task.model_validate(item) for item in data]


# ---------------------------------------------------------------------------
# Match records
# ---------------------------------------------------------------------------

@dataclass
class MatchedTarget:
    """One exported endpoint on a matched container."""
    matcher_type: MatcherType
    matcher_index: int = 0
    port: int = 0
    metrics_path: str = ""
    job: str = ""


@dataclass
class MatchedContainer:
    task_index: int
    container_index: int
    targets: list[MatchedTarget] = field(default_factory=list)

    @property
    def matcher_type(self) -> MatcherType | None:
        return self.targets[0].matcher_type if self.targets else None

    @property
    def matcher_index(self) -> int | None:
        return self.targets[0].matcher_index if self.targets else None


@dataclass
class MatchResult:
    """Output of one matcher invocation."""
    containers: list[MatchedContainer] = field(default_factory=list)

    @property
    def tasks(self) -> list[int]:
        """Indexes of tasks with at least one matched container, in scan order."""
        seen: dict[int, None] = {}
        for c in self.containers:
            seen.setdefault(c.task_index, None)
        return list(seen)


@dataclass
class TaskAnnotated:
    """
    A task plus the containers matched during one filter run.

    ``matched`` is append-only and keyed by container index: a container
    already attached is never replaced or duplicated.
    """
    task: Task
    index: int
    matched: list[MatchedContainer] = field(default_factory=list)
    _attached: set[int] = field(default_factory=set, repr=False, compare=False)

    @property
    def containers(self) -> list[Container]:
        return self.task.containers

    def add_matched_container(self, container: MatchedContainer) -> bool:
        """Attach ``container`` unless it is already attached. Returns True on attach."""
        if container.container_index in self._attached:
            return False
        self._attached.add(container.container_index)
        self.matched.append(container)
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_index": self.index,
            "task_arn": self.task.task_arn,
            "matched": [
                {
                    "container_index": c.container_index,
                    "container_name": self.task.containers[c.container_index].name,
                    "targets": [
                        {
                            "matcher_type": t.matcher_type.value,
                            "matcher_index": t.matcher_index,
                            "port": t.port,
                            "metrics_path": t.metrics_path,
                            "job": t.job,
                        }
                        for t in c.targets
                    ],
                }
                for c in self.matched
            ],
        }


def annotate(tasks: list[Task]) -> list[TaskAnnotated]:
    """Fresh annotated wrappers, one per task, indexed by position."""
    return [TaskAnnotated(task=t, index=i) for i, t in enumerate(tasks)]
