from findport.detectors import procfs
from findport.detectors.process import probe_proc_net

from conftest import TCP_HEADER, tcp_row


def test_hex_port_is_four_uppercase_digits():
    assert procfs.hex_port(8080) == "1F90"
    assert procfs.hex_port(22) == "0016"
    assert procfs.hex_port(65535) == "FFFF"


def test_parse_socket_table_skips_header_and_short_rows():
    text = TCP_HEADER + tcp_row(0, 8080, 55555) + "   1: garbage\n"
    rows = procfs.parse_socket_table(text)
    assert rows == [{"local_port": 8080, "port_hex": "1F90", "state": 0x0A, "inode": "55555"}]


def test_parse_socket_table_ignores_malformed_address():
    bad = tcp_row(0, 8080, 1).replace("00000000:1F90", "nothex")
    assert procfs.parse_socket_table(TCP_HEADER + bad) == []


def test_listening_inodes_only_listen_rows(fake_proc):
    fake_proc.listen(8080, 55555)
    fake_proc.listen(8080, 66666, state="01")   # ESTABLISHED, not a listener
    fake_proc.listen(8081, 77777)
    fake_proc.listen(8080, 88888, proto="tcp6")
    assert procfs.listening_inodes(8080) == {"55555", "88888"}


def test_listening_inodes_ignores_zero_inode(fake_proc):
    fake_proc.listen(8080, 0)
    assert procfs.listening_inodes(8080) == set()


def test_socket_owners_distinct_and_sorted(fake_proc):
    fake_proc.socket_fd(4321, 55555, fd=3)
    fake_proc.socket_fd(4321, 55555, fd=4)
    fake_proc.socket_fd(99, 55555)
    fake_proc.socket_fd(500, 12345)
    assert procfs.socket_owners({"55555"}) == ["99", "4321"]


def test_socket_owners_without_inodes_scans_nothing(fake_proc):
    fake_proc.socket_fd(4321, 55555)
    assert procfs.socket_owners(set()) == []


def test_missing_proc_is_inconclusive(tmp_path):
    root = str(tmp_path / "absent")
    assert not procfs.available(root)
    assert procfs.listening_inodes(8080, root) == set()
    assert procfs.socket_owners({"1"}, root) == []


def test_probe_proc_net_end_to_end(fake_proc):
    fake_proc.listen(8080, 55555)
    fake_proc.socket_fd(4321, 55555)
    assert probe_proc_net(8080) == ["4321"]
    assert probe_proc_net(9999) == []
