"""
cli.py – Command-line interface for findport.

Usage:
    findport [OPTIONS] <port>
    python -m findport [OPTIONS] <port>

Options:
    -pid            Print only the PID of the owning process, exit 1 if none.
    -container      Print only the ID of the owning container, exit 1 if none.
    -json           Emit the full result as JSON instead of coloured text.
    -nocolor        Disable colourised output.
    -verbose        Debug logging of every probe on stderr.
    -h, --help      Show this help message.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import textwrap
from dataclasses import dataclass
from typing import Dict, List, Optional

from findport.detectors import tools
from findport.findings import ContainerRecord, OutputMode, ResolutionState, Runtime
from findport.scanner import run_scan

EXIT_OK = 0
EXIT_NOT_FOUND = 1


# ── ANSI colour helpers ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Palette:
    red: str = ""
    green: str = ""
    yellow: str = ""
    cyan: str = ""
    reset: str = ""


PLAIN = Palette()
ANSI = Palette(
    red="\033[31m",
    green="\033[32m",
    yellow="\033[33m",
    cyan="\033[36m",
    reset="\033[0m",
)


def colour_enabled(nocolor: bool, mode: OutputMode, stream=None, env=None) -> bool:
    """Colour only for normal text output on a real, non-dumb terminal."""
    if nocolor or mode.restricted or os.name == "nt":
        return False
    env = os.environ if env is None else env
    if env.get("TERM") == "dumb":
        return False
    stream = sys.stdout if stream is None else stream
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


# ── Report rendering ───────────────────────────────────────────────────────────

def render_container_help(record: ContainerRecord, port: int, listing: str = "") -> List[str]:
    """Suggested follow-up commands for one container; informational only."""
    cli = record.runtime.value
    cid = record.container_id
    title = f"===== Additional {cli.capitalize()} Management Commands ====="
    lines: List[str] = []
    if listing:
        lines += [
            "",
            f"Container details from '{cli} ps --filter \"publish={port}\"':",
            listing,
        ]
    lines += [
        "",
        title,
        "View container details:",
        f"  {cli} ps -f \"id={cid}\"",
        f"  {cli} inspect {cid}",
        "",
        "Manage the container:",
        f"  {cli} start {cid}",
        f"  {cli} stop {cid}",
        f"  {cli} logs {cid}",
        f"  {cli} rm {cid}",
        "",
        "Inspect networking details:",
        f"  {cli} inspect {cid} | grep -A20 NetworkSettings",
        "",
        "Get a shell in the running container:",
        f"  {cli} exec -it {cid} /bin/sh",
        "",
        "If the container is not running, start a temporary shell:",
        f"  {cli} run --rm -it {cid} /bin/sh",
        "=" * len(title),
        "",
    ]
    return lines


def render_report_text(
    state: ResolutionState,
    pal: Palette = PLAIN,
    listings: Optional[Dict[Runtime, str]] = None,
) -> str:
    listings = listings or {}
    port = state.port
    lines = [f"{pal.yellow}--- Searching for Processes ---{pal.reset}"]

    for rec in state.process_list():
        lines.append(f"{pal.green}Found process PID: {rec.pid}, Command: {rec.command}{pal.reset}")
    if not state.found_process:
        lines.append(f"{pal.red}No matching processes found using port {port}.{pal.reset}")

    lines.append(f"{pal.yellow}--- Searching for Containers ---{pal.reset}")
    for rec in state.container_list():
        lines.append(f"{pal.cyan}Found container ID: {rec.container_id}{pal.reset}")
        lines += render_container_help(rec, port, listings.get(rec.runtime, ""))
    if not state.found_container:
        lines.append(f"{pal.red}No matching containers found using port {port}.{pal.reset}")

    lines.append(f"{pal.yellow}Search completed for port {port}.{pal.reset}")
    if not state.has_detections():
        lines.append(
            f"{pal.red}No matching processes or containers found using port {port}.{pal.reset}"
        )
    return "\n".join(lines)


def render_report_json(state: ResolutionState) -> str:
    data = {
        "port": state.port,
        "processes": [
            {"pid": p.pid, "command": p.command, "source": p.source}
            for p in state.process_list()
        ],
        "containers": [
            {"id": c.container_id, "runtime": c.runtime.value}
            for c in state.container_list()
        ],
    }
    return json.dumps(data, indent=2)


def gather_listings(state: ResolutionState) -> Dict[Runtime, str]:
    """``<runtime> ps`` tables for every runtime that reported a container."""
    listings: Dict[Runtime, str] = {}
    for rec in state.container_list():
        if rec.runtime not in listings:
            listings[rec.runtime] = tools.container_listing(rec.runtime.value, state.port)
    return listings


# ── Main ───────────────────────────────────────────────────────────────────────

def _port(value: str) -> int:
    if not value.isdigit():
        raise argparse.ArgumentTypeError(f"port must be numeric, got {value!r}")
    port = int(value)
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range (1-65535): {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="findport",
        usage="%(prog)s [options] <port>",
        description="Find the process or container using a network port.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog=textwrap.dedent("""\
        Examples:
          findport 8080                 # describe everything bound to 8080
          findport -pid 8080            # bare PID, exit 1 if none
          findport -container 5432      # bare container ID, exit 1 if none
          findport -json 8080           # machine-readable full report
        """),
    )
    p.add_argument("port", type=_port, help="Port number to look up")
    output = p.add_mutually_exclusive_group()
    output.add_argument("-pid", action="store_true",
                        help="Output only the process PID using the port or exit(1) if not found")
    output.add_argument("-container", action="store_true",
                        help="Output only the container ID using the port or exit(1) if not found")
    output.add_argument("-json", action="store_true", help="Output the report as JSON")
    p.add_argument("-nocolor", action="store_true", help="Disable colorized output")
    p.add_argument("-verbose", action="store_true", help="Extra debug output on stderr")
    return p


def output_mode(args: argparse.Namespace) -> OutputMode:
    if args.pid:
        return OutputMode.PID_ONLY
    if args.container:
        return OutputMode.CONTAINER_ONLY
    return OutputMode.NORMAL


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s %(message)s")

    mode = output_mode(args)
    state = run_scan(args.port, mode)

    # ── Restricted modes: one bare identifier or a silent failure ────────────
    if mode is OutputMode.PID_ONLY:
        if not state.found_process:
            return EXIT_NOT_FOUND
        print(state.process_list()[0].pid)
        return EXIT_OK

    if mode is OutputMode.CONTAINER_ONLY:
        if not state.found_container:
            return EXIT_NOT_FOUND
        print(state.container_list()[0].container_id)
        return EXIT_OK

    # ── Normal mode ──────────────────────────────────────────────────────────
    if args.json:
        print(render_report_json(state))
        return EXIT_OK

    pal = ANSI if colour_enabled(args.nocolor, mode) else PLAIN
    print(render_report_text(state, pal, gather_listings(state)))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
