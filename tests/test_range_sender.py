import os

import pytest
from werkzeug.exceptions import RequestedRangeNotSatisfiable

from range_sender import CHUNK_SIZE, byte_range, read_slice, send_video


@pytest.mark.parametrize("header,expected", [
    ("bytes=0-99", (0, 99)),
    ("bytes=100-", (100, 999)),
    ("bytes=-100", (900, 999)),
    ("bytes=900-5000", (900, 999)),
])
def test_byte_range(header, expected):
    assert byte_range(header, 1000) == expected


@pytest.mark.parametrize("header", ["bytes=1000-", "bytes=0-1,5-6", "bytes=", "nonsense"])
def test_byte_range_rejected(header):
    with pytest.raises(RequestedRangeNotSatisfiable):
        byte_range(header, 1000)


def test_read_slice_chunks(tmp_path):
    data = bytes(range(256)) * 1024
    path = tmp_path / "clip.mp4"
    path.write_bytes(data)

    f = open(path, 'rb')
    chunks = list(read_slice(f, 10, CHUNK_SIZE + 5))

    assert [len(c) for c in chunks] == [CHUNK_SIZE, 5]
    assert b''.join(chunks) == data[10:10 + CHUNK_SIZE + 5]
    assert f.closed


def test_read_slice_stops_at_end_of_file(tmp_path):
    path = tmp_path / "short.mp4"
    path.write_bytes(b"abc")
    with open(path, 'rb') as f:
        assert b''.join(read_slice(f, 1, 100)) == b"bc"


def test_send_video_keeps_reading_replaced_file(tmp_path):
    path = tmp_path / "garden.mp4"
    path.write_bytes(b"first render")
    response = send_video(open(path, 'rb'), download_name="garden_20240102.mp4")

    newer = tmp_path / "garden.partial.mp4"
    newer.write_bytes(b"second")
    os.replace(newer, path)

    assert response.status_code == 200
    assert response.headers['Content-Length'] == '12'
    assert b''.join(response.response) == b"first render"


def test_send_video_closes_file_on_bad_range(tmp_path):
    path = tmp_path / "short.mp4"
    path.write_bytes(b"abc")
    f = open(path, 'rb')

    with pytest.raises(RequestedRangeNotSatisfiable):
        send_video(f, 'bytes=50-')

    assert f.closed
