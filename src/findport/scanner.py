"""
scanner.py – Runs the probe chains and produces a ResolutionState.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from findport.detectors import container as container_detector
from findport.detectors import process as process_detector
from findport.detectors import tools
from findport.findings import (
    ContainerRecord,
    OutputMode,
    ProcessRecord,
    ResolutionState,
    parse_pid,
)

log = logging.getLogger("findport.scanner")


def probe_name(probe: Callable) -> str:
    return getattr(probe, "name", None) or getattr(probe, "__name__", None) or repr(probe)


def _run_probe(probe: Callable[[int], Sequence[str]], port: int) -> List[str]:
    """Call *probe*; anything it raises counts as an inconclusive (empty) result."""
    try:
        result = probe(port)
    except Exception as exc:
        log.debug("%s raised %s: %s", probe_name(probe), type(exc).__name__, exc)
        return []
    return [str(token) for token in (result or [])]


# ── Process chain ─────────────────────────────────────────────────────────────

def resolve_processes(
    state: ResolutionState,
    probes: Optional[Sequence[Callable[[int], Sequence[str]]]] = None,
    first_only: bool = False,
    describe: Optional[Callable[[int], str]] = None,
) -> ResolutionState:
    """
    Try *probes* in order until one yields an acceptable pid.  Every pid from
    that probe is recorded (deduplicated, enriched with its command name).
    With *first_only* the chain stops at the first accepted pid and skips the
    name lookup.
    """
    if probes is None:
        probes = process_detector.PROCESS_PROBES
    if describe is None:
        describe = tools.command_name

    for probe in probes:
        if state.found_process:
            break
        name = probe_name(probe)
        tokens = _run_probe(probe, state.port)
        log.debug("%s reported %s for port %d", name, tokens or "nothing", state.port)
        for token in tokens:
            pid = parse_pid(token)
            if pid is None:
                log.debug("%s: rejected pid token %r", name, token)
                continue
            if pid in state.processes:
                continue
            command = "" if first_only else describe(pid)
            record = ProcessRecord(pid=pid, command=command, source=name)
            state.add_process(record)
            log.debug("%s: accepted %s", name, record)
            if first_only:
                return state
    return state


# ── Container chain ───────────────────────────────────────────────────────────

def resolve_containers(
    state: ResolutionState,
    probes: Optional[Sequence[container_detector.RuntimeProbe]] = None,
    first_only: bool = False,
) -> ResolutionState:
    """Try each runtime in order until one reports a container for the port."""
    if probes is None:
        probes = container_detector.CONTAINER_PROBES

    for probe in probes:
        if state.found_container:
            break
        ids = _run_probe(probe, state.port)
        log.debug("%s reported %s for port %d", probe_name(probe), ids or "nothing", state.port)
        for cid in ids:
            cid = cid.strip()
            if not cid:
                continue
            state.add_container(ContainerRecord(container_id=cid, runtime=probe.runtime))
            if first_only:
                return state
    return state


# ── Public entry point ────────────────────────────────────────────────────────

def run_scan(
    port: int,
    mode: OutputMode = OutputMode.NORMAL,
    process_probes: Optional[Sequence[Callable[[int], Sequence[str]]]] = None,
    container_probes: Optional[Sequence[container_detector.RuntimeProbe]] = None,
) -> ResolutionState:
    """
    Resolve the owners of *port*.  A restricted mode only runs the chain for
    its own category and stops at the first owner found.
    """
    state = ResolutionState(port=port)

    if mode is not OutputMode.CONTAINER_ONLY:
        resolve_processes(state, process_probes, first_only=mode is OutputMode.PID_ONLY)

    if mode is not OutputMode.PID_ONLY:
        resolve_containers(state, container_probes, first_only=mode is OutputMode.CONTAINER_ONLY)

    return state
