#!/usr/bin/env python3
"""
Timelapse stream server.
Plays each camera's latest snapshot folder as an MJPEG stream and serves
its rendered timelapses as seekable MP4 files.

Usage:
    python3 timelapse_server.py
    python3 timelapse_server.py --port 8080 --snapshot-folder /data/snapshots

Endpoints:
    /                         Overview page with every camera
    /api/cameras              Camera names (JSON)
    /api/stream/<camera>      Latest snapshots as MJPEG at stream fps
    /api/live/<camera>        Same at live-preview fps
    /api/video/<camera>       Latest rendered .mp4 (range requests supported)
    /api/download/<camera>    Render the latest snapshots and download them
    /video                    Latest .mp4 directly under the timelapse root

Streams loop by default and pick up new snapshots on every pass;
add ?mode=once to stop after the last frame.
"""

import os
from threading import Lock

from flask import Flask, Response, abort, current_app, jsonify, render_template_string, request

import camera_registry
import frame_source
from console_log import log
from frame_source import NotFound
from range_sender import open_video, send_video
from render_trigger import EncoderError, render_timelapse
from server_settings import Settings, parse_args
from stream_session import Mode, StreamingSession

app = Flask(__name__)
app.config['SETTINGS'] = Settings()

STREAM_MODES = {'loop': Mode.LOOPING, 'once': Mode.ONE_SHOT}

# One ffmpeg at a time; renders share the output folder
render_lock = Lock()

INDEX_TEMPLATE = '''
<html>
<head>
    <title>Timelapse Cameras</title>
    <style>
        body {
            background: #1a1a1a;
            color: #fff;
            font-family: sans-serif;
            margin: 0;
            padding: 20px;
        }
        .camera {
            display: inline-block;
            vertical-align: top;
            margin: 10px;
            padding: 10px;
            background: #2a2a2a;
            border-radius: 8px;
        }
        img, video { width: 480px; height: auto; display: block; margin-bottom: 8px; }
        a { color: #8cf; }
    </style>
</head>
<body>
    <h1>Timelapse Cameras</h1>
    {% if not cameras %}
    <p>No cameras found in {{ timelapse_folder }}</p>
    {% endif %}
    {% for camera in cameras %}
    <div class="camera">
        <h2>{{ camera }}</h2>
        <img src="/api/live/{{ camera }}" alt="{{ camera }} live" />
        <video src="/api/video/{{ camera }}" controls muted></video>
        <a href="/api/stream/{{ camera }}">Full-speed stream</a> |
        <a href="/api/download/{{ camera }}">Download today</a>
    </div>
    {% endfor %}
</body>
</html>
'''


def configure(settings):
    """Point the app at a new set of folders and frame rates."""
    app.config['SETTINGS'] = settings
    return app


def _settings():
    return current_app.config['SETTINGS']


@app.errorhandler(NotFound)
def not_found(e):
    log("http", f"404 {request.path}: {e}")
    return jsonify(error=str(e), reason=e.reason), 404


@app.errorhandler(EncoderError)
def encoder_failed(e):
    log("http", f"500 {request.path}: {e}")
    return jsonify(error=str(e)), 500


def open_stream(name, frame_rate):
    """Resolve the camera's frames, then commit to a multipart response."""
    mode = STREAM_MODES.get(request.args.get('mode', 'loop'))
    if mode is None:
        abort(400, description="mode must be 'loop' or 'once'")

    settings = _settings()
    camera = camera_registry.get_camera(settings, name)

    def locate():
        _, frames = frame_source.latest_frames(camera.snapshot_root, settings.frame_extension)
        return frames

    # Raises NotFound before any header is committed
    session = StreamingSession.open(
        locate, frame_rate, mode,
        name=f"{camera.name}@{request.remote_addr}"
    )
    response = Response(
        session.frames(),
        headers=session.commit_headers(),
        direct_passthrough=True
    )
    response.call_on_close(session.close)
    return response


@app.route('/')
def index():
    settings = _settings()
    return render_template_string(
        INDEX_TEMPLATE,
        cameras=camera_registry.list_cameras(settings),
        timelapse_folder=settings.timelapse_folder
    )


@app.route('/api/cameras')
def cameras():
    return jsonify(camera_registry.list_cameras(_settings()))


@app.route('/api/stream/<camera>')
def stream(camera):
    return open_stream(camera, _settings().stream_fps)


@app.route('/api/live/<camera>')
def live(camera):
    return open_stream(camera, _settings().live_fps)


@app.route('/api/video/<camera>')
def camera_video(camera):
    settings = _settings()
    cam = camera_registry.get_camera(settings, camera)
    path = frame_source.latest_video(cam.video_root, settings.video_extension)
    return send_video(path, request.headers.get('Range'))


@app.route('/video')
def video():
    settings = _settings()
    path = frame_source.latest_video(settings.timelapse_folder, settings.video_extension)
    return send_video(path, request.headers.get('Range'))


@app.route('/api/download/<camera>')
def download(camera):
    settings = _settings()
    cam = camera_registry.get_camera(settings, camera)
    folder, frames = frame_source.latest_frames(cam.snapshot_root, settings.frame_extension)
    date = os.path.basename(folder)
    output_path = os.path.join(settings.render_folder, f"{cam.name}.mp4")

    # Open before releasing the lock so the next render replaces the path, not this file
    with render_lock:
        render_timelapse(frames, output_path, settings.render_fps, settings.ffmpeg_bin)
        rendered = open_video(output_path)

    return send_video(
        rendered,
        request.headers.get('Range'),
        download_name=f"{cam.name}_{date}.mp4"
    )


def main(argv=None):
    settings = parse_args(argv)
    configure(settings)

    log("server", f"Timelapse folder: {os.path.abspath(settings.timelapse_folder)}")
    log("server", f"Snapshot folder: {os.path.abspath(settings.snapshot_folder)}")
    log("server", f"Stream {settings.stream_fps:g} fps, live {settings.live_fps:g} fps")
    print(f"Starting timelapse server at http://{settings.host}:{settings.port}")

    app.run(host=settings.host, port=settings.port, threaded=True)


if __name__ == '__main__':
    main()
