"""
Console logging shared by the server modules.
Every line carries a wall-clock stamp and a source tag.
"""

import datetime


def log(tag, message):
    stamp = datetime.datetime.now().strftime('%H:%M:%S')
    print(f"[{stamp}] [{tag}] {message}", flush=True)
