"""
Stream address handling for the desktop viewer.

Usage:
    from stream_source import parse_args, get_stream_url

    args = parse_args()
    cap = cv2.VideoCapture(get_stream_url(args))
"""

import argparse

# Defaults
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3000
ENDPOINTS = {
    'live': '/api/live',      # Live preview cadence
    'stream': '/api/stream',  # Full-speed playback
}


def parse_args(argv=None, description="Timelapse stream viewer"):
    """Parse command-line arguments for stream selection."""
    parser = argparse.ArgumentParser(description=description)

    parser.add_argument(
        'camera',
        help='Camera name (a folder under the server\'s timelapse root)'
    )
    parser.add_argument(
        '--host', '-H',
        default=DEFAULT_HOST,
        help=f'Server address (default: {DEFAULT_HOST})'
    )
    parser.add_argument(
        '--port', '-p',
        type=int,
        default=DEFAULT_PORT,
        help=f'Server port (default: {DEFAULT_PORT})'
    )
    parser.add_argument(
        '--endpoint', '-e',
        choices=sorted(ENDPOINTS),
        default='live',
        help='live (preview rate) or stream (full rate) (default: live)'
    )
    parser.add_argument(
        '--once',
        action='store_true',
        help='Stop after the last frame instead of looping'
    )

    return parser.parse_args(argv)


def get_stream_url(args):
    """Build the MJPEG URL for the selected camera and endpoint."""
    url = f"http://{args.host}:{args.port}{ENDPOINTS[args.endpoint]}/{args.camera}"
    if args.once:
        url += "?mode=once"
    return url


def get_source_description(args):
    """Get a human-readable description of the stream."""
    return f"{args.camera} ({args.endpoint}) on {args.host}:{args.port}"
