"""
detectors/procfs.py – Kernel socket-table lookups via /proc (Linux).

Two steps:
  1.  /proc/net/tcp and /proc/net/tcp6 are parsed for LISTEN rows whose local
      port matches; each such row carries the socket inode.
  2.  /proc/<pid>/fd/* symlinks are scanned for ``socket:[<inode>]``; the
      <pid> directory of every hit is an owner.

Both steps only read pseudo-files and never raise: a missing /proc, a
permission error or a malformed row simply contributes nothing.
"""
from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, List, Optional, Set

log = logging.getLogger("findport.detectors.procfs")

# ── Tunables ──────────────────────────────────────────────────────────────────
PROC_ROOT = "/proc"
SOCKET_TABLES = ("tcp", "tcp6")
TCP_LISTEN = 0x0A


# ── /proc/net parser ──────────────────────────────────────────────────────────

def hex_port(port: int) -> str:
    """Port in the socket table's notation: four uppercase hex digits."""
    return f"{port:04X}"


def parse_socket_table(text: str) -> List[Dict]:
    """Parse the body of a /proc/net/{tcp,tcp6} file into row dicts."""
    rows: List[Dict] = []
    for line in text.splitlines()[1:]:  # skip header
        parts = line.split()
        if len(parts) < 10:
            continue
        local_hex, state_hex, inode = parts[1], parts[3], parts[9]
        try:
            _, port_hex = local_hex.rsplit(":", 1)
            rows.append({
                "local_port": int(port_hex, 16),
                "port_hex":   port_hex.upper(),
                "state":      int(state_hex, 16),
                "inode":      inode,
            })
        except ValueError:
            continue
    return rows


def _read_table(proc_root: str, proto: str) -> str:
    path = os.path.join(proc_root, "net", proto)
    try:
        with open(path, "r", errors="replace") as fh:
            return fh.read()
    except OSError as exc:
        log.debug("cannot read %s: %s", path, exc)
        return ""


def listening_inodes(port: int, proc_root: Optional[str] = None) -> Set[str]:
    """Socket inodes of every LISTEN row bound to *port*."""
    proc_root = proc_root or PROC_ROOT
    wanted = hex_port(port)
    inodes: Set[str] = set()
    for proto in SOCKET_TABLES:
        for row in parse_socket_table(_read_table(proc_root, proto)):
            if row["port_hex"] != wanted or row["state"] != TCP_LISTEN:
                continue
            if row["inode"] and row["inode"] != "0":
                inodes.add(row["inode"])
    return inodes


# ── fd table scan ─────────────────────────────────────────────────────────────

def _pid_dirs(proc_root: str) -> List[str]:
    try:
        return [d for d in os.listdir(proc_root) if d.isdigit()]
    except OSError:
        return []


def socket_owners(inodes: Iterable[str], proc_root: Optional[str] = None) -> List[str]:
    """
    Return the distinct /proc/<pid> directory names whose fd table holds a
    descriptor for any of *inodes*, in ascending numeric order.
    """
    proc_root = proc_root or PROC_ROOT
    targets = {f"socket:[{inode}]" for inode in inodes}
    if not targets:
        return []
    owners: Set[str] = set()
    for pid_s in _pid_dirs(proc_root):
        fd_dir = os.path.join(proc_root, pid_s, "fd")
        try:
            fds = os.listdir(fd_dir)
        except OSError:
            continue  # process exited, or not ours to inspect
        for fd in fds:
            try:
                link = os.readlink(os.path.join(fd_dir, fd))
            except OSError:
                continue
            if link in targets:
                owners.add(pid_s)
                break
    return sorted(owners, key=int)


def available(proc_root: Optional[str] = None) -> bool:
    proc_root = proc_root or PROC_ROOT
    return os.path.isfile(os.path.join(proc_root, "net", "tcp"))
