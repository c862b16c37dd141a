import fcntl
import threading

from highlighter.features.markers.data.marker_file import MarkerFile, parse_markers


def test_append_writes_two_decimals(tmp_path):
    marker_file = MarkerFile(tmp_path / "nested" / "markers.txt")
    marker_file.append(196.099)
    marker_file.append(5)

    assert marker_file.path.read_text() == "196.10\n5.00\n"
    assert marker_file.peek() == [196.1, 5.0]


def test_consume_removes_only_what_was_read(tmp_path):
    marker_file = MarkerFile(tmp_path / "markers.txt")
    marker_file.append(10.0)
    marker_file.append(50.0)

    pending = marker_file.peek()
    marker_file.append(75.0)

    assert marker_file.consume(len(pending)) == [10.0, 50.0]
    assert marker_file.peek() == [75.0]
    assert marker_file.consume(1) == [75.0]
    assert marker_file.path.read_text() == ""


def test_missing_file_means_no_markers(tmp_path):
    marker_file = MarkerFile(tmp_path / "absent.txt")
    assert marker_file.peek() == []
    assert marker_file.consume(3) == []
    assert not marker_file.path.exists()


def test_malformed_lines_are_dropped():
    content = "10.5\n\nnot-a-number\n  20 \ninf\nnan\n-\n30.25\n"
    assert parse_markers(content) == [10.5, 20.0, 30.25]


def test_separate_handles_share_the_file(tmp_path):
    path = tmp_path / "markers.txt"
    watcher_side = MarkerFile(path)
    server_side = MarkerFile(path)

    server_side.append(10.0)
    pending = watcher_side.peek()
    server_side.append(42.0)

    assert watcher_side.consume(len(pending)) == [10.0]
    assert server_side.peek() == [42.0]


def test_append_waits_for_another_holder(tmp_path):
    path = tmp_path / "markers.txt"
    MarkerFile(path).append(1.0)
    writer = MarkerFile(path)

    with open(path, "r+") as fh:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
        appending = threading.Thread(target=writer.append, args=(42.0,))
        appending.start()
        appending.join(timeout=0.2)
        assert appending.is_alive()
        assert fh.read() == "1.00\n"
        fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    appending.join(timeout=5)
    assert not appending.is_alive()
    assert writer.peek() == [1.0, 42.0]
