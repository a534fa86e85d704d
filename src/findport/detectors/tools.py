"""
detectors/tools.py – Adapters around external inspection utilities.

One function per collaborator.  Every adapter returns plain structured data
(lists of tokens or text) and swallows tool failures into an empty result, so
nothing above this module ever deals with a missing binary, a permission
error or a malformed line.
"""
from __future__ import annotations

import logging
import subprocess
from typing import List, Sequence

import psutil

log = logging.getLogger("findport.detectors.tools")

# Seconds an external utility may run before its probe counts as inconclusive
TOOL_TIMEOUT = 15


def run_tool(argv: Sequence[str]) -> str:
    """
    Run *argv* and return its stdout, or "" when the tool is missing, cannot be
    executed or times out.  A non-zero exit status is not an error here:
    lsof and friends exit 1 when nothing matched.
    """
    try:
        proc = subprocess.run(
            list(argv),
            capture_output=True,
            text=True,
            errors="replace",
            timeout=TOOL_TIMEOUT,
        )
    except FileNotFoundError:
        log.debug("%s not installed", argv[0])
        return ""
    except subprocess.TimeoutExpired:
        log.debug("%s timed out after %ss", argv[0], TOOL_TIMEOUT)
        return ""
    except OSError as exc:
        log.debug("%s failed to start: %s", argv[0], exc)
        return ""
    if proc.returncode != 0:
        log.debug("%s exited %d", argv[0], proc.returncode)
    return proc.stdout or ""


# ── lsof ──────────────────────────────────────────────────────────────────────

def lsof_pids(port: int) -> List[str]:
    """Pid tokens from ``lsof -t -i :<port> -sTCP:LISTEN``, one per output line."""
    out = run_tool(["lsof", "-t", "-i", f":{port}", "-sTCP:LISTEN"])
    return [line.strip() for line in out.splitlines() if line.strip()]


# ── netstat ───────────────────────────────────────────────────────────────────

def parse_netstat(text: str, port: int) -> List[str]:
    """
    Pid tokens from ``netstat -anp`` output: LISTEN rows whose local address
    ends in ``:<port>`` (or ``.<port>`` in BSD notation).  The pid is the part
    of the ``pid/program`` column before the slash.
    """
    suffixes = (f":{port}", f".{port}")
    pids: List[str] = []
    for line in text.splitlines():
        parts = line.split()
        if "LISTEN" not in parts or len(parts) < 5:
            continue
        local = parts[3]
        if not local.endswith(suffixes):
            continue
        # program names may contain spaces
        owner = next(
            (p for p in parts[parts.index("LISTEN") + 1:] if "/" in p or p == "-"), ""
        )
        token = owner.split("/", 1)[0]
        if token and token not in pids:
            pids.append(token)
    return pids


def netstat_pids(port: int) -> List[str]:
    return parse_netstat(run_tool(["netstat", "-anp"]), port)


# ── psutil ────────────────────────────────────────────────────────────────────

def psutil_pids(port: int) -> List[str]:
    """Pids of sockets psutil sees bound to *port* (TCP LISTEN or unconnected UDP)."""
    try:
        connections = psutil.net_connections(kind="inet")
    except (psutil.AccessDenied, PermissionError) as exc:
        log.debug("psutil.net_connections denied: %s", exc)
        return []
    except OSError as exc:
        log.debug("psutil.net_connections failed: %s", exc)
        return []
    pids: List[str] = []
    for conn in connections:
        if not conn.laddr or conn.laddr.port != port or not conn.pid:
            continue
        listening = conn.status == psutil.CONN_LISTEN
        unconnected_udp = conn.status == psutil.CONN_NONE and not conn.raddr
        if not (listening or unconnected_udp):
            continue
        token = str(conn.pid)
        if token not in pids:
            pids.append(token)
    return pids


def command_name(pid: int) -> str:
    """The process's command name, or "" if it exited or cannot be inspected."""
    try:
        return psutil.Process(pid).name()
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as exc:
        log.debug("no command name for pid %d: %s", pid, exc)
        return ""
    except OSError as exc:
        log.debug("no command name for pid %d: %s", pid, exc)
        return ""


# ── Container runtimes ────────────────────────────────────────────────────────

def container_ids(runtime: str, port: int) -> List[str]:
    """Ids of containers *runtime* reports publishing *port*."""
    out = run_tool([
        runtime, "ps", "--filter", f"publish={port}", "--format", "{{.ID}}",
    ])
    ids: List[str] = []
    for line in out.splitlines():
        cid = line.strip()
        if cid and cid not in ids:
            ids.append(cid)
    return ids


def container_listing(runtime: str, port: int) -> str:
    """Descriptive ``<runtime> ps`` table for the containers publishing *port*."""
    return run_tool([runtime, "ps", "--filter", f"publish={port}"]).rstrip("\n")
