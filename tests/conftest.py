import os

import pytest

from findport.detectors import procfs, tools

TCP_HEADER = (
    "  sl  local_address rem_address   st tx_queue rx_queue tr tm->when "
    "retrnsmt   uid  timeout inode\n"
)


def tcp_row(slot, port, inode, state="0A", addr="00000000"):
    return (
        f"   {slot}: {addr}:{port:04X} 00000000:0000 {state} "
        f"00000000:00000000 00:00000000 00000000  1000        0 {inode} "
        f"1 0000000000000000 100 0 0 10 0\n"
    )


class FakeProc:
    """A throwaway /proc tree: socket tables plus per-pid fd symlinks."""

    def __init__(self, root):
        self.root = root
        (root / "net").mkdir()
        (root / "net" / "tcp").write_text(TCP_HEADER)
        (root / "net" / "tcp6").write_text(TCP_HEADER)

    def listen(self, port, inode, proto="tcp", state="0A"):
        path = self.root / "net" / proto
        rows = path.read_text().count("\n")
        with open(path, "a") as fh:
            fh.write(tcp_row(rows - 1, port, inode, state=state))

    def socket_fd(self, pid, inode, fd=3):
        fd_dir = self.root / str(pid) / "fd"
        fd_dir.mkdir(parents=True, exist_ok=True)
        os.symlink(f"socket:[{inode}]", fd_dir / str(fd))


class FakeTools:
    """
    Stand-in for external utilities.  ``outputs`` maps the full argv tuple, an
    (argv[0], argv[1]) pair or the bare tool name to canned stdout, most
    specific first; every call is recorded.
    """

    def __init__(self):
        self.outputs = {}
        self.calls = []
        self.names = {}
        self.connections = []

    def run_tool(self, argv):
        argv = list(argv)
        self.calls.append(argv)
        for key in (tuple(argv), tuple(argv[:2]), argv[0]):
            if key in self.outputs:
                return self.outputs[key]
        return ""

    def command_name(self, pid):
        return self.names.get(pid, "")

    def called(self, tool):
        return [c for c in self.calls if c[0] == tool]


@pytest.fixture
def fake_tools(monkeypatch, tmp_path):
    fake = FakeTools()
    monkeypatch.setattr(tools, "run_tool", fake.run_tool)
    monkeypatch.setattr(tools, "command_name", fake.command_name)
    monkeypatch.setattr(tools.psutil, "net_connections", lambda kind="inet": list(fake.connections))
    # keep the host's real /proc out of the picture unless a test builds one
    monkeypatch.setattr(procfs, "PROC_ROOT", str(tmp_path / "no-proc"))
    return fake


@pytest.fixture
def fake_proc(tmp_path, monkeypatch, fake_tools):
    root = tmp_path / "proc"
    root.mkdir()
    monkeypatch.setattr(procfs, "PROC_ROOT", str(root))
    return FakeProc(root)
