"""
Camera registry.
Cameras are not stored anywhere: each sub-folder of the timelapse root is
a camera, and the same name under the snapshot root holds its stills.
"""

import os
from dataclasses import dataclass

from frame_source import NotFound


@dataclass
class Camera:
    name: str
    video_root: str     # <timelapse root>/<name>, rendered .mp4 files
    snapshot_root: str  # <snapshot root>/<name>, dated folders of frames


def list_cameras(settings):
    """Sorted camera names under the timelapse root (empty if it is missing)."""
    root = settings.timelapse_folder
    try:
        names = os.listdir(root)
    except OSError:
        return []
    return sorted(
        n for n in names
        if not n.startswith('.') and os.path.isdir(os.path.join(root, n))
    )


def is_valid_name(name):
    """Reject names that would escape the storage roots."""
    if not name or name.startswith('.'):
        return False
    return '/' not in name and '\\' not in name and os.sep not in name


def get_camera(settings, name):
    """Look up a camera listed under the timelapse root. Anything else is NotFound."""
    if not is_valid_name(name) or name not in list_cameras(settings):
        raise NotFound(f"Unknown camera {name!r}", "unknown-camera")
    return Camera(
        name=name,
        video_root=os.path.join(settings.timelapse_folder, name),
        snapshot_root=os.path.join(settings.snapshot_folder, name),
    )
