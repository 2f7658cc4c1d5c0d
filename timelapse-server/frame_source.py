"""
Frame source resolution.
Maps a camera's storage root to the ordered list of frame files to play.

Snapshot layout (names are date-stamped, so name order is capture order):
    <snapshot root>/<camera>/20240102/f001.jpg
    <snapshot root>/<camera>/20240102/f002.jpg
"""

import os

from console_log import log


class NotFound(LookupError):
    """A camera, folder or file the request depends on does not exist."""

    def __init__(self, message, reason):
        super().__init__(message)
        self.reason = reason


def _has_extension(name, extension):
    return name.lower().endswith(extension.lower())


def resolve_latest_date_folder(camera_root):
    """Return the lexicographically last sub-directory of camera_root."""
    try:
        names = os.listdir(camera_root)
    except OSError:
        log("frames", f"No folder at {camera_root}")
        raise NotFound(f"No folder found for {camera_root}", "no-folder")

    folders = sorted(n for n in names if os.path.isdir(os.path.join(camera_root, n)))
    if not folders:
        log("frames", f"No dated folders inside {camera_root}")
        raise NotFound(f"No dated folders found in {camera_root}", "no-dates")

    return os.path.join(camera_root, folders[-1])


def list_frames(folder, extension=".jpg"):
    """
    List frame files in folder, sorted by name.
    An empty folder is NotFound, never an empty list.
    """
    try:
        names = os.listdir(folder)
    except OSError:
        log("frames", f"Frame folder missing: {folder}")
        raise NotFound(f"No folder found at {folder}", "no-folder")

    frames = sorted(n for n in names if _has_extension(n, extension))
    if not frames:
        log("frames", f"Folder {folder} has no {extension} frames")
        raise NotFound(f"No {extension} images found in {folder}", "no-frames")

    return [os.path.join(folder, n) for n in frames]


def latest_frames(camera_root, extension=".jpg"):
    """Resolve the latest dated folder and its frames. Returns (folder, frames)."""
    folder = resolve_latest_date_folder(camera_root)
    return folder, list_frames(folder, extension)


def latest_video(folder, extension=".mp4"):
    """Return the path of the lexicographically last video file in folder."""
    try:
        names = os.listdir(folder)
    except OSError:
        log("frames", f"Video folder missing: {folder}")
        raise NotFound(f"No folder found at {folder}", "no-folder")

    videos = sorted(
        n for n in names
        if _has_extension(n, extension) and os.path.isfile(os.path.join(folder, n))
    )
    if not videos:
        log("frames", f"No {extension} files in {folder}")
        raise NotFound(f"No {extension} video found in {folder}", "no-video")

    return os.path.join(folder, videos[-1])


def read_frame(path):
    with open(path, 'rb') as f:
        return f.read()
