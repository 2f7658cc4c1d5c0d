from pathlib import Path

import pytest

import timelapse_server
from server_settings import Settings

CAMERA = "garden"
LATEST_DATE = "20240102"


def frame_bytes(name):
    return f"jpeg:{name}".encode()


def write_frames(folder, names):
    folder.mkdir(parents=True, exist_ok=True)
    for name in names:
        (folder / name).write_bytes(frame_bytes(name))


@pytest.fixture
def frame_names():
    return [f"f{i:03d}.jpg" for i in range(1, 11)]


@pytest.fixture
def settings(tmp_path, frame_names):
    """
    timelapses/garden/{2024-01-01,2024-01-02}.mp4
    snapshots/garden/20240101/f001.jpg..f003.jpg
    snapshots/garden/20240102/f001.jpg..f010.jpg
    """
    timelapses = tmp_path / "timelapses"
    snapshots = tmp_path / "snapshots"

    video_root = timelapses / CAMERA
    video_root.mkdir(parents=True)
    (video_root / "2024-01-01.mp4").write_bytes(b"old")
    (video_root / "2024-01-02.mp4").write_bytes(bytes(range(250)) * 4)

    write_frames(snapshots / CAMERA / "20240101", frame_names[:3])
    write_frames(snapshots / CAMERA / LATEST_DATE, frame_names)

    return Settings(
        timelapse_folder=str(timelapses),
        snapshot_folder=str(snapshots),
        render_folder=str(tmp_path / "renders"),
        stream_fps=200,
        live_fps=200,
    )


@pytest.fixture
def latest_folder(settings):
    return Path(settings.snapshot_folder) / CAMERA / LATEST_DATE


@pytest.fixture
def client(settings):
    timelapse_server.configure(settings)
    timelapse_server.app.config['TESTING'] = True
    with timelapse_server.app.test_client() as client:
        yield client
