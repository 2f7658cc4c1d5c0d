import os

import pytest

import frame_source
from frame_source import NotFound


def test_latest_date_folder_is_last_by_name(settings, latest_folder):
    camera_root = os.path.join(settings.snapshot_folder, "garden")
    assert frame_source.resolve_latest_date_folder(camera_root) == str(latest_folder)


def test_latest_date_folder_ignores_files(tmp_path):
    (tmp_path / "20240101").mkdir()
    (tmp_path / "20991231.txt").write_text("not a folder")
    assert frame_source.resolve_latest_date_folder(str(tmp_path)).endswith("20240101")


def test_missing_camera_root(tmp_path):
    with pytest.raises(NotFound) as err:
        frame_source.resolve_latest_date_folder(str(tmp_path / "nope"))
    assert err.value.reason == "no-folder"


def test_camera_root_without_dated_folders(tmp_path):
    with pytest.raises(NotFound) as err:
        frame_source.resolve_latest_date_folder(str(tmp_path))
    assert err.value.reason == "no-dates"


def test_list_frames_sorted_and_filtered(tmp_path):
    for name in ["f003.jpg", "f001.jpg", "notes.txt", "f002.JPG", "f004.png"]:
        (tmp_path / name).write_bytes(b"x")

    frames = frame_source.list_frames(str(tmp_path), ".jpg")

    assert [os.path.basename(p) for p in frames] == ["f001.jpg", "f002.JPG", "f003.jpg"]


def test_list_frames_keeps_plain_name_order(tmp_path):
    # Unpadded names sort by text, not by number
    for name in ["f2.jpg", "f10.jpg", "f1.jpg"]:
        (tmp_path / name).write_bytes(b"x")

    frames = frame_source.list_frames(str(tmp_path))

    assert [os.path.basename(p) for p in frames] == ["f1.jpg", "f10.jpg", "f2.jpg"]


def test_empty_folder_is_not_found(tmp_path, capsys):
    (tmp_path / "readme.txt").write_text("no frames here")

    with pytest.raises(NotFound) as err:
        frame_source.list_frames(str(tmp_path))

    assert err.value.reason == "no-frames"
    assert "has no .jpg frames" in capsys.readouterr().out


def test_missing_folder_logged_differently(tmp_path, capsys):
    with pytest.raises(NotFound) as err:
        frame_source.list_frames(str(tmp_path / "gone"))

    assert err.value.reason == "no-folder"
    assert "Frame folder missing" in capsys.readouterr().out


def test_latest_frames(settings, latest_folder, frame_names):
    folder, frames = frame_source.latest_frames(os.path.join(settings.snapshot_folder, "garden"))

    assert folder == str(latest_folder)
    assert frames == [str(latest_folder / n) for n in frame_names]


def test_latest_video(settings):
    path = frame_source.latest_video(os.path.join(settings.timelapse_folder, "garden"))
    assert os.path.basename(path) == "2024-01-02.mp4"


def test_latest_video_missing(tmp_path):
    with pytest.raises(NotFound) as err:
        frame_source.latest_video(str(tmp_path))
    assert err.value.reason == "no-video"


def test_read_frame(tmp_path):
    (tmp_path / "a.jpg").write_bytes(b"\xff\xd8data")
    assert frame_source.read_frame(str(tmp_path / "a.jpg")) == b"\xff\xd8data"
