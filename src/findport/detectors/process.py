"""
detectors/process.py – Probes that map a port to the owning OS process.

Checks (in order, first non-empty wins):
  1.  Kernel socket table  /proc/net/tcp{,6} + /proc/<pid>/fd   (Linux)
  2.  lsof -t -i :<port>
  3.  netstat -anp, LISTEN rows only
  4.  psutil.net_connections

Each probe returns raw pid tokens exactly as the source reported them;
validation (pid 0, non-numeric) happens once, in the scanner.
"""
from __future__ import annotations

from typing import Callable, List

from findport.detectors import procfs, tools

ProcessProbe = Callable[[int], List[str]]


def probe_proc_net(port: int) -> List[str]:
    """Owners of the LISTEN socket for *port* according to /proc."""
    if not procfs.available():
        return []
    inodes = procfs.listening_inodes(port)
    if not inodes:
        return []
    return procfs.socket_owners(inodes)


def probe_lsof(port: int) -> List[str]:
    return tools.lsof_pids(port)


def probe_netstat(port: int) -> List[str]:
    return tools.netstat_pids(port)


def probe_psutil(port: int) -> List[str]:
    return tools.psutil_pids(port)


PROCESS_PROBES: List[ProcessProbe] = [
    probe_proc_net,
    probe_lsof,
    probe_netstat,
    probe_psutil,
]
