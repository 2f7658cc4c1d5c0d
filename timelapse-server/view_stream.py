#!/usr/bin/env python3
"""
Desktop viewer for the timelapse server's MJPEG streams.

Usage:
    python3 view_stream.py garden                  # Live preview from localhost
    python3 view_stream.py garden -e stream        # Full-speed playback
    python3 view_stream.py garden --host 10.0.0.5  # Remote server

Press 'q' to quit, 's' to save a screenshot.
"""

import time

import cv2
import numpy as np

import stream_source

PANEL_WIDTH = 220
DISPLAY_HEIGHT = 480
RECONNECT_DELAY = 1.0


def create_side_panel(height, description, fps, frames):
    """Create an info panel showing stream stats."""
    panel = np.zeros((height, PANEL_WIDTH, 3), dtype=np.uint8)
    panel[:] = (30, 30, 30)  # Dark gray background

    cv2.putText(panel, "TIMELAPSE", (10, 25),
                cv2.FONT_HERSHEY_SIMPLEX, 0.6, (150, 150, 150), 1)

    y_offset = 60
    for line in (description, f"FPS: {fps}", f"Frames: {frames}"):
        cv2.putText(panel, line, (10, y_offset),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.45, (255, 255, 255), 1)
        y_offset += 25

    return panel


def fit_height(frame, height):
    h, w = frame.shape[:2]
    return cv2.resize(frame, (max(1, int(w * height / h)), height))


def main():
    args = stream_source.parse_args()
    url = stream_source.get_stream_url(args)
    description = stream_source.get_source_description(args)

    print(f"Connecting to {url}")
    print("Press 'q' to quit, 's' to save screenshot")
    print()

    cap = cv2.VideoCapture(url)
    if not cap.isOpened():
        print(f"ERROR: Could not connect to {url}")
        print("Make sure timelapse_server.py is running and the camera has snapshots")
        return

    # FPS tracking
    fps_time = time.time()
    fps_count = 0
    fps = 0
    frames = 0

    while True:
        ret, frame = cap.read()
        if not ret:
            if args.once:
                print("Stream finished")
                break
            print("Lost connection, reconnecting...")
            cap.release()
            time.sleep(RECONNECT_DELAY)
            cap = cv2.VideoCapture(url)
            continue

        frames += 1
        fps_count += 1
        if time.time() - fps_time >= 1.0:
            fps = fps_count
            fps_count = 0
            fps_time = time.time()

        frame_large = fit_height(frame, DISPLAY_HEIGHT)
        panel = create_side_panel(DISPLAY_HEIGHT, description, fps, frames)
        display = np.hstack([frame_large, panel])

        cv2.imshow("Timelapse Viewer", display)

        key = cv2.waitKey(1) & 0xFF
        if key == ord('q'):
            break
        elif key == ord('s'):
            filename = f"screenshot_{int(time.time())}.jpg"
            cv2.imwrite(filename, display)
            print(f"Saved {filename}")

    cap.release()
    cv2.destroyAllWindows()


if __name__ == '__main__':
    main()
