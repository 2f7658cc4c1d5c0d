"""
Serve finished video files with HTTP byte-range support, so browsers
can seek inside a timelapse without downloading all of it.
"""

import os

from flask import Response
from werkzeug.exceptions import RequestedRangeNotSatisfiable
from werkzeug.http import parse_range_header

from frame_source import NotFound

CHUNK_SIZE = 64 * 1024


def read_slice(f, start, length):
    """Yield length bytes of the open file f starting at start, then close it."""
    try:
        f.seek(start)
        remaining = length
        while remaining > 0:
            chunk = f.read(min(CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk
    finally:
        f.close()


def byte_range(range_header, size):
    """
    Turn a Range header into an inclusive (start, end) pair for a file of size bytes.
    Malformed, multi-part or out-of-bounds ranges raise RequestedRangeNotSatisfiable.
    """
    parsed = parse_range_header(range_header)
    span = parsed.range_for_length(size) if parsed is not None else None
    if span is None:
        raise RequestedRangeNotSatisfiable(length=size)
    start, stop = span
    return start, stop - 1


def open_video(path):
    try:
        return open(path, 'rb')
    except OSError:
        raise NotFound(f"No video found at {path}", "no-video")


def send_video(source, range_header=None, download_name=None, mimetype='video/mp4'):
    """
    Respond with a video file. source is a path or a file already opened in
    binary mode; an open file is read even if its path is replaced meanwhile.
    The response owns the file and closes it.
    """
    f = open_video(source) if isinstance(source, str) else source
    size = os.fstat(f.fileno()).st_size

    headers = {'Accept-Ranges': 'bytes'}
    if download_name:
        headers['Content-Disposition'] = f'attachment; filename="{download_name}"'

    if not range_header:
        start, length, status = 0, size, 200
    else:
        try:
            start, end = byte_range(range_header, size)
        except RequestedRangeNotSatisfiable:
            f.close()
            raise
        length = end - start + 1
        status = 206
        headers['Content-Range'] = f'bytes {start}-{end}/{size}'

    headers['Content-Length'] = str(length)
    response = Response(read_slice(f, start, length), status, headers=headers,
                        mimetype=mimetype, direct_passthrough=True)
    # Body never iterated (client gone before the first chunk)
    response.call_on_close(f.close)
    return response
