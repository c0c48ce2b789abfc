import errno
import io
import os
import sys
from datetime import datetime

import pytest

from socketlab.simplelog import LogLevel, LogSink, SimpleLog, level_name, log_time

HEX = bytes([
    0x27, 0xbb, 0x36, 0xc0, 0x5f, 0x64, 0x8a, 0x44,
    0xfa, 0x60, 0x72, 0x0c, 0x4f, 0x9e, 0x34, 0x69,
    0x03, 0x45, 0xae, 0x2c, 0x9c, 0x7b, 0xc0, 0x09,
    0xac, 0xd0, 0xf7, 0x1b, 0x90, 0x89, 0x07, 0x58,
    0xd5, 0x02, 0xe6, 0x88, 0xc1, 0x7b, 0x94, 0xf7,
    0x18, 0x8a, 0x62, 0x1c, 0xf0, 0xfc, 0x61, 0xb7,
    0x35, 0xa6, 0x17, 0x78, 0x15, 0x27, 0x46, 0x65,
    0x78, 0x53, 0x3f, 0x08, 0x96, 0x7f, 0x87, 0xfc,
])


@pytest.fixture
def captured():
    buf = io.StringIO()
    return SimpleLog(stream=buf), buf


def test_level_name():
    assert level_name(LogLevel.OFF) == ""
    assert level_name(LogLevel.FATAL) == "FATAL"
    assert level_name(LogLevel.DEBUG) == "DEBUG"
    assert level_name(6) == "INVALID_LEVEL"
    assert level_name(-1) == "INVALID_LEVEL"


def test_log_time_format():
    stamp = log_time()
    assert len(stamp) == 23
    parsed = datetime.strptime(stamp, "%Y-%m-%dT%H:%M:%S.%f")
    assert abs((datetime.now() - parsed).total_seconds()) < 5


def test_sink_defaults():
    sink = LogSink()
    assert (sink.stream, sink.file, sink.owned) == (None, None, False)


def test_sink_set_stream():
    sink = LogSink()
    sink.set(sys.stdout)
    assert sink.stream is sys.stdout
    sink.set(sys.stderr)
    assert sink.stream is sys.stderr
    sink.set(None)
    assert sink.stream is None


def test_sink_set_file_name():
    sink = LogSink()
    sink.set(None, "test.log")
    assert sink.file == "test.log"
    sink.set(None, "/tmp/new_test.log")
    assert sink.file == "/tmp/new_test.log"
    sink.set(None, None)
    assert sink.file is None


def test_sink_combined():
    sink = LogSink()
    sink.set(sys.stdout, "combined_test.log", True)
    assert (sink.stream, sink.file, sink.owned) == (sys.stdout, "combined_test.log", True)
    sink.owned = False
    sink.set(None, None, False)
    assert (sink.stream, sink.file, sink.owned) == (None, None, False)


def test_sink_closes_owned_stream(tmp_path):
    handle = open(tmp_path / "slog_test.txt", "w")
    sink = LogSink()
    sink.set(handle, owned=True)
    sink.set(None)
    assert handle.closed
    assert sink.stream is None


def test_sink_keeps_unowned_stream():
    buf = io.StringIO()
    sink = LogSink()
    sink.set(buf)
    sink.close()
    assert not buf.closed
    assert sink.stream is None


def test_default_level_and_validation():
    log = SimpleLog()
    assert log.level == LogLevel.INFO
    with pytest.raises(ValueError):
        log.level = 6
    with pytest.raises(ValueError):
        log.level = -1
    assert log.level == LogLevel.INFO


def test_info_prefix(captured):
    log, buf = captured
    log.info("hello world\n")
    out = buf.getvalue()
    assert out.startswith("[ INFO] [")
    assert "[test_info_prefix:" in out
    assert out.endswith("] - hello world\n")


def test_levels_filter(captured):
    log, buf = captured
    log.debug("d\n")
    assert buf.getvalue() == ""
    log.level = LogLevel.DEBUG
    log.debug("d\n")
    assert "[DEBUG]" in buf.getvalue()
    log.level = LogLevel.WARN
    buf.truncate(0)
    buf.seek(0)
    log.info("i\n")
    log.warn("w\n")
    log.error("e\n")
    log.fatal("f\n")
    out = buf.getvalue()
    assert "[ INFO]" not in out
    assert "[ WARN]" in out and "[ERROR]" in out and "[FATAL]" in out


def test_explicit_location(captured):
    log, buf = captured
    log.log(LogLevel.ERROR, "x\n", func="main", line=42)
    assert "[main:42] - x\n" in buf.getvalue()


def test_errno_expansion(captured, tmp_path):
    log, buf = captured
    try:
        open(tmp_path / "missing.log")
    except OSError:
        log.info("fopen(): %m\n")
    assert "fopen(): " + os.strerror(errno.ENOENT) + "\n" in buf.getvalue()


def test_escaped_percent_m(captured):
    log, buf = captured
    log.info("%%m is: %%m\n")
    assert buf.getvalue().endswith("- %m is: %m\n")


def test_write_returns_length(captured):
    log, buf = captured
    assert log.write(LogLevel.INFO, "abc") == 3
    assert log.write(LogLevel.DEBUG, "abc") == 0
    assert buf.getvalue() == "abc"


def test_write_without_sink():
    with pytest.raises(RuntimeError):
        SimpleLog().write(LogLevel.INFO, "abc")


def test_hexdump_layout(captured):
    log, buf = captured
    log.hexdump(LogLevel.INFO, "hex", HEX)
    out = buf.getvalue()
    lines = out.split("\n")
    assert lines[0].startswith("[ INFO] [") and lines[0].endswith("hex: ")
    assert lines[1] == "\t27 bb 36 c0 5f 64 8a 44   fa 60 72 0c 4f 9e 34 69 "
    assert lines[4] == "\t35 a6 17 78 15 27 46 65   78 53 3f 08 96 7f 87 fc "
    assert len(lines) == 6 and lines[5] == ""


def test_hexdump_filtered(captured):
    log, buf = captured
    log.hexdump(LogLevel.DEBUG, "hex", HEX)
    log.level = LogLevel.OFF
    log.hexdump(LogLevel.FATAL, "hex", HEX)
    assert buf.getvalue() == ""


def test_die_exits(captured):
    log, buf = captured
    with pytest.raises(SystemExit) as exc:
        log.die("bye\n")
    assert exc.value.code == 1
    assert "[FATAL]" in buf.getvalue()


def test_set_log_file(tmp_path):
    log = SimpleLog()
    log.set_log_file("stdout")
    assert log.sink.stream is sys.stdout and not log.sink.owned
    path = tmp_path / "out.log"
    log.set_log_file(str(path))
    assert log.sink.owned and log.sink.file == str(path)
    first = log.sink.stream
    log.info("saved\n")
    log.set_log_file("stderr")
    assert first.closed
    assert path.read_text().endswith("- saved\n")


def test_set_log_file_none():
    with pytest.raises(ValueError):
        SimpleLog().set_log_file(None)