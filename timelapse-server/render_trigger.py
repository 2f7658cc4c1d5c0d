"""
On-demand timelapse rendering.
Hands the current frame list to ffmpeg and waits for the .mp4.

The output name is fixed per camera. Each render is written beside it and
swapped in only once ffmpeg succeeds, so a failed render keeps the last one.
"""

import os
import subprocess

from console_log import log

FFMPEG = "ffmpeg"


class EncoderError(RuntimeError):
    """The external encoder could not be started or exited non-zero."""

    def __init__(self, message, returncode=None, stderr=""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def write_frame_list(frames, list_file, frame_rate):
    """Write an ffmpeg concat list that plays frames in the given order."""
    duration = 1.0 / frame_rate
    with open(list_file, 'w', encoding='utf-8') as f:
        for path in frames:
            quoted = os.path.abspath(path).replace("'", r"'\''")
            f.write(f"file '{quoted}'\n")
            f.write(f"duration {duration:.6f}\n")


def build_command(ffmpeg_bin, list_file, output_path, frame_rate):
    return [
        ffmpeg_bin,
        '-y',                         # Overwrite the previous render
        '-loglevel', 'error',
        '-f', 'concat',
        '-safe', '0',                 # Frame paths are absolute
        '-i', list_file,
        '-r', f'{frame_rate:g}',
        '-c:v', 'libx264',
        '-pix_fmt', 'yuv420p',        # Plays in every browser
        '-movflags', '+faststart',    # Seekable before fully downloaded
        output_path,
    ]


def render_timelapse(frames, output_path, frame_rate=30, ffmpeg_bin=FFMPEG):
    """Encode frames into output_path. Raises EncoderError on failure."""
    output_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(output_dir, exist_ok=True)

    base, ext = os.path.splitext(output_path)
    list_file = base + '.txt'
    # Readers of the previous render keep their file until this one is complete
    partial_path = f"{base}.partial{ext}"
    write_frame_list(frames, list_file, frame_rate)
    cmd = build_command(ffmpeg_bin, list_file, partial_path, frame_rate)

    log("render", f"Encoding {len(frames)} frames to {output_path}")
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True
        )
    except OSError as e:
        log("render", f"Could not start {ffmpeg_bin}: {e}")
        raise EncoderError(f"Could not start encoder {ffmpeg_bin!r}: {e}")

    if result.returncode != 0:
        tail = (result.stderr or "")[-2000:]
        log("render", f"{ffmpeg_bin} exited with {result.returncode}: {tail.strip()}")
        raise EncoderError(f"Encoder failed (rc={result.returncode})",
                           returncode=result.returncode, stderr=tail)

    try:
        os.replace(partial_path, output_path)
    except OSError as e:
        log("render", f"No output from {ffmpeg_bin} at {partial_path}: {e}")
        raise EncoderError(f"Encoder produced no output: {e}")

    log("render", f"Wrote {output_path}")
    return output_path
