from minisend.constants import EXIT_DIAG_FAILED, EXIT_OK
from minisend.doctor import SELF_TEST_PATTERN, inspect_source, run_doctor, run_self_test
from minisend.errors import OpenFailed
from minisend.serialio import LinkHandle
from minisend.state import TransmissionConfig

from conftest import CapturingLogger, FakeSerial


class FakeLink:
    def __init__(self, ser=None):
        self.ser = ser

    def open(self):
        if self.ser is None:
            raise OpenFailed("Cannot open /dev/fake: No such file or directory")
        return LinkHandle(self.ser, "/dev/fake")


def test_inspect_source_counts(tmp_path):
    p = tmp_path / "text.txt"
    p.write_bytes(b"a" * 100 + b"\n" + b"b" * 70 + b"\n")
    info = inspect_source(str(p))
    assert info == {"size": 172, "line_feeds": 2, "forwarded": 170, "wraps": 2}


def test_doctor_never_writes(tmp_path, capsys):
    p = tmp_path / "text.txt"
    p.write_bytes(b"hello\n")
    ser = FakeSerial()
    cfg = TransmissionConfig(source_path=str(p), port="/dev/fake")

    assert run_doctor(cfg, link=FakeLink(ser)) == EXIT_OK
    assert ser.writes == []
    assert ser.is_open is False
    out = capsys.readouterr().out
    assert "5 forwarded" in out
    assert "all checks passed" in out


def test_doctor_reports_failures(tmp_path, capsys):
    cfg = TransmissionConfig(source_path=str(tmp_path / "missing.txt"), port="/dev/fake")
    assert run_doctor(cfg, link=FakeLink(None)) == EXIT_DIAG_FAILED
    out = capsys.readouterr().out
    assert "FAIL cannot read" in out
    assert "FAIL Cannot open /dev/fake" in out


def test_self_test_sends_pattern_once(capsys):
    ser = FakeSerial()
    cfg = TransmissionConfig(port="/dev/fake", delay_us=0)

    assert run_self_test(cfg, CapturingLogger(), link=FakeLink(ser)) == EXIT_OK
    wire = b"".join(ser.writes)
    assert wire.startswith(b"\x0c" + b"\n" * 10)
    assert wire.replace(b"\r\n", b"").find(SELF_TEST_PATTERN) == 11
    assert wire.endswith(b"\r" + b"\n" * 70)
    assert ser.is_open is False
    assert "Self-test complete" in capsys.readouterr().out


def test_self_test_open_failure(capsys):
    logger = CapturingLogger()
    cfg = TransmissionConfig(port="/dev/fake", delay_us=0)
    assert run_self_test(cfg, logger, link=FakeLink(None)) == EXIT_DIAG_FAILED
    assert logger.entries[-1][0] == "ERROR"
