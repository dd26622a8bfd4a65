from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from html import escape
from typing import Mapping

from flask import Flask, jsonify, request, send_file

from .config import STYLE_PRESETS, configure_logging
from .errors import InvalidConfig, InvalidInput
from .infrastructure.cache import CACHE, last_good_png, render_key
from .infrastructure.network import FETCHER
from .infrastructure.responses import send_png
from .processing.codec import decode_data_url, encode_data_url, encode_png
from .processing.pipeline import PIPELINE, MangaPipeline

APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def _render_cached(pipeline: MangaPipeline, source: bytes) -> bytes:
    config = pipeline.config
    key = render_key(source, config)
    cached = CACHE.get(key)
    if cached is not None:
        return cached
    png = pipeline.render_png(source, config)
    CACHE.put(key, png)
    return png


def create_app(pipeline: MangaPipeline = PIPELINE) -> Flask:
    configure_logging()
    app = Flask(__name__)

    @app.errorhandler(InvalidInput)
    def invalid_input(exc: InvalidInput):
        return jsonify(success=False, error=str(exc)), 400

    @app.errorhandler(InvalidConfig)
    def invalid_config(exc: InvalidConfig):
        return jsonify(success=False, error=str(exc), errors=exc.errors), 400

    @app.route("/manga", methods=["GET"])
    def manga_from_source():
        try:
            source = FETCHER.fetch_bytes()
            return send_png(_render_cached(pipeline, source))
        except InvalidInput as exc:
            cached = last_good_png()
            if cached:
                logger.warning("Serving last good image: %s", exc)
                return send_file(io.BytesIO(cached), mimetype="image/png")
            return (f"Source Error: {exc}", 502)

    @app.route("/manga", methods=["POST"])
    def manga_upload():
        # Uploads never become the upstream fallback image.
        if not request.is_json:
            png = pipeline.render_png(request.get_data())
            return send_file(io.BytesIO(png), mimetype="image/png")

        payload = request.get_json(silent=True)
        if not isinstance(payload, Mapping):
            raise InvalidInput("Expected a JSON object")
        image_data = payload.get("imageData")
        if not isinstance(image_data, str):
            raise InvalidInput("imageData must be a base64 string")
        settings = payload.get("settings") or {}

        source = decode_data_url(image_data)
        config = pipeline.config.merged(settings)
        png = pipeline.render_png(source, config)
        return jsonify(
            success=True,
            imageData=encode_data_url(png),
            metadata={
                "original_size": len(source),
                "converted_size": len(png),
                "processed_at": datetime.now(timezone.utc).isoformat(),
                "settings_used": config.as_dict(),
            },
        )

    @app.route("/raw")
    def raw():
        try:
            source = FETCHER.fetch_bytes()
            return send_file(io.BytesIO(encode_png(pipeline.decode(source))), mimetype="image/png")
        except InvalidInput as exc:
            return (str(exc), 502)

    @app.route("/debug/edges")
    def debug_edges():
        try:
            source = FETCHER.fetch_bytes()
            mask = pipeline.edge_mask(source)
            return send_file(io.BytesIO(encode_png(mask)), mimetype="image/png")
        except InvalidInput as exc:
            return (f"error: {exc}", 502)

    @app.route("/health")
    def health():
        return jsonify(ok=True, version=APP_VERSION, config=pipeline.config.as_dict())

    @app.route("/settings", methods=["GET", "PATCH"])
    def settings_view():
        if request.method == "GET":
            return jsonify(pipeline.config.as_dict())

        payload = request.get_json(silent=True)
        if payload is None:
            raise InvalidConfig({"body": "Expected a JSON object"})
        updated = pipeline.configure(payload)
        return jsonify(updated.as_dict())

    @app.route("/presets")
    def presets():
        return jsonify(
            {
                name: {"edgeThreshold": edge, "shadowStrength": shadow}
                for name, (edge, shadow) in STYLE_PRESETS.items()
            }
        )

    @app.route("/")
    def index():
        endpoints = [
            ("Manga Render", "/manga", "Upstream image, manga style"),
            ("Raw Source", "/raw", "Original upstream image"),
            ("Edge Mask", "/debug/edges", "Sobel edge mask only"),
            ("Settings", "/settings", "Current pipeline parameters"),
            ("Presets", "/presets", "Named style presets"),
            ("Health", "/health", "Service status"),
        ]
        rows = "\n".join(
            f'<li><a href="{escape(path)}">{escape(title)}</a> &mdash; {escape(help_text)}</li>'
            for title, path, help_text in endpoints
        )
        return (
            "<!doctype html><html><head><title>Manga Filter</title></head>"
            f"<body><h1>Manga Filter {escape(APP_VERSION)}</h1><ul>{rows}</ul></body></html>"
        )

    return app


app = create_app()
