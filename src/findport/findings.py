"""
findings.py – Shared data structures for findport resolution results.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional


class Runtime(enum.Enum):
    PODMAN = "podman"
    DOCKER = "docker"


class OutputMode(enum.Enum):
    NORMAL = "normal"
    PID_ONLY = "pid"
    CONTAINER_ONLY = "container"

    @property
    def restricted(self) -> bool:
        return self is not OutputMode.NORMAL


@dataclass(frozen=True)
class ProcessRecord:
    """An OS process found bound to the port."""

    pid: int
    command: str = ""       # best-effort; empty when the name could not be read
    source: str = ""        # name of the probe that reported the pid

    def __str__(self) -> str:
        return f"PID {self.pid} ({self.command or '?'})"


@dataclass(frozen=True)
class ContainerRecord:
    """A container whose published port mapping matches the port."""

    container_id: str
    runtime: Runtime

    def __str__(self) -> str:
        return f"{self.runtime.value}:{self.container_id}"


def parse_pid(token: object) -> Optional[int]:
    """Return *token* as a pid, or None for pid 0 and anything non-numeric."""
    text = str(token).strip()
    if not (text.isascii() and text.isdigit()):
        return None
    pid = int(text)
    return pid if pid > 0 else None


@dataclass
class ResolutionState:
    """Everything found for one port during a single run."""

    port: int
    processes: Dict[int, ProcessRecord] = field(default_factory=dict)
    containers: Dict[str, ContainerRecord] = field(default_factory=dict)

    # ------------------------------------------------------------------ helpers
    @property
    def found_process(self) -> bool:
        return bool(self.processes)

    @property
    def found_container(self) -> bool:
        return bool(self.containers)

    def add_process(self, record: ProcessRecord) -> bool:
        """Record *record* unless its pid is already known. Returns True if added."""
        if record.pid in self.processes:
            return False
        self.processes[record.pid] = record
        return True

    def add_container(self, record: ContainerRecord) -> bool:
        if record.container_id in self.containers:
            return False
        self.containers[record.container_id] = record
        return True

    def process_list(self) -> List[ProcessRecord]:
        return list(self.processes.values())

    def container_list(self) -> List[ContainerRecord]:
        return list(self.containers.values())

    def has_detections(self) -> bool:
        return self.found_process or self.found_container
