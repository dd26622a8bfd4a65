from __future__ import annotations

import io

from flask import send_file

from .cache import remember_last_good


def send_png(data: bytes):
    remember_last_good(data)
    return send_file(io.BytesIO(data), mimetype="image/png")
