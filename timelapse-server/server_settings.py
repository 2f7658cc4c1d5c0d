"""
Server configuration.
Defaults live here; the environment overrides them and command-line flags
override the environment.

Usage:
    from server_settings import parse_args

    settings = parse_args()
"""

import argparse
import os
import tempfile
from dataclasses import dataclass

# Defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_TIMELAPSE_FOLDER = "timelapses"
DEFAULT_SNAPSHOT_FOLDER = "snapshots"
DEFAULT_RENDER_FOLDER = os.path.join(tempfile.gettempdir(), "timelapse-renders")
STREAM_FPS = 30  # Full-speed playback of a day's snapshots
LIVE_FPS = 10    # Live preview cadence
RENDER_FPS = 30
FRAME_EXTENSION = ".jpg"
VIDEO_EXTENSION = ".mp4"


@dataclass
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timelapse_folder: str = DEFAULT_TIMELAPSE_FOLDER
    snapshot_folder: str = DEFAULT_SNAPSHOT_FOLDER
    render_folder: str = DEFAULT_RENDER_FOLDER
    stream_fps: float = STREAM_FPS
    live_fps: float = LIVE_FPS
    render_fps: float = RENDER_FPS
    frame_extension: str = FRAME_EXTENSION
    video_extension: str = VIDEO_EXTENSION
    ffmpeg_bin: str = "ffmpeg"


def _positive(name, raw, cast):
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(environ=None):
    """Build Settings from environment variables, falling back to defaults."""
    env = os.environ if environ is None else environ
    settings = Settings()

    settings.host = env.get("HOST", settings.host)
    if env.get("PORT"):
        settings.port = _positive("PORT", env["PORT"], int)
    settings.timelapse_folder = env.get("TIMELAPSE_FOLDER", settings.timelapse_folder)
    settings.snapshot_folder = env.get("SNAPSHOT_FOLDER", settings.snapshot_folder)
    settings.render_folder = env.get("RENDER_FOLDER", settings.render_folder)
    settings.ffmpeg_bin = env.get("FFMPEG_BIN", settings.ffmpeg_bin)

    for attr, var in (("stream_fps", "STREAM_FPS"),
                      ("live_fps", "LIVE_FPS"),
                      ("render_fps", "RENDER_FPS")):
        if env.get(var):
            setattr(settings, attr, _positive(var, env[var], float))

    return settings


def parse_args(argv=None, environ=None, description="Timelapse stream server"):
    """Parse command-line flags on top of the environment settings."""
    settings = load_settings(environ)
    parser = argparse.ArgumentParser(description=description)

    parser.add_argument(
        '--host',
        default=settings.host,
        help=f'Interface to listen on (default: {settings.host})'
    )
    parser.add_argument(
        '--port', '-p',
        type=int,
        default=settings.port,
        help=f'Listen port (default: {settings.port})'
    )
    parser.add_argument(
        '--timelapse-folder', '-t',
        default=settings.timelapse_folder,
        help='Root holding one folder of rendered .mp4 files per camera'
    )
    parser.add_argument(
        '--snapshot-folder', '-s',
        default=settings.snapshot_folder,
        help='Root holding one folder of dated snapshot folders per camera'
    )
    parser.add_argument(
        '--render-folder',
        default=settings.render_folder,
        help='Where on-demand renders are written (overwritten each time)'
    )
    parser.add_argument(
        '--stream-fps',
        type=float,
        default=settings.stream_fps,
        help=f'Frame rate of /api/stream (default: {settings.stream_fps:g})'
    )
    parser.add_argument(
        '--live-fps',
        type=float,
        default=settings.live_fps,
        help=f'Frame rate of /api/live (default: {settings.live_fps:g})'
    )
    parser.add_argument(
        '--render-fps',
        type=float,
        default=settings.render_fps,
        help=f'Frame rate of /api/download renders (default: {settings.render_fps:g})'
    )
    parser.add_argument(
        '--ffmpeg',
        default=settings.ffmpeg_bin,
        help='ffmpeg binary used for downloads'
    )

    args = parser.parse_args(argv)

    settings.host = args.host
    settings.port = _positive("--port", args.port, int)
    settings.timelapse_folder = args.timelapse_folder
    settings.snapshot_folder = args.snapshot_folder
    settings.render_folder = args.render_folder
    settings.stream_fps = _positive("--stream-fps", args.stream_fps, float)
    settings.live_fps = _positive("--live-fps", args.live_fps, float)
    settings.render_fps = _positive("--render-fps", args.render_fps, float)
    settings.ffmpeg_bin = args.ffmpeg
    return settings
