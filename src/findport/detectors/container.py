"""
detectors/container.py – Probes that map a port to a published container.

One probe per runtime, tried podman first, then docker.  The chain stops at
the first runtime that reports any container.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from findport.detectors import tools
from findport.findings import Runtime


@dataclass(frozen=True)
class RuntimeProbe:
    """Lists containers of one runtime whose published ports include the port."""

    runtime: Runtime

    @property
    def name(self) -> str:
        return f"probe_{self.runtime.value}"

    def __call__(self, port: int) -> List[str]:
        return tools.container_ids(self.runtime.value, port)


CONTAINER_RUNTIMES = (Runtime.PODMAN, Runtime.DOCKER)

CONTAINER_PROBES: List[RuntimeProbe] = [RuntimeProbe(rt) for rt in CONTAINER_RUNTIMES]
