import io
import math

import pytest
from PIL import Image

from manga_filter.config import SETTINGS
from manga_filter.errors import InvalidConfig, InvalidInput
from manga_filter.processing.codec import decode_data_url, decode_image, encode_data_url, encode_png
from manga_filter.processing.compose import composite_edges
from manga_filter.processing.edges import detect_edges
from manga_filter.processing.grayscale import to_grayscale
from manga_filter.processing.pipeline import MangaPipeline, PipelineConfig, render
from manga_filter.processing.raster import RasterBuffer
from manga_filter.processing.shading import cell_shade
from manga_filter.processing.tones import DEFAULT_TONE_LEVELS, ToneLevel, build_tone_levels, quantize_tones


def pattern_raster(width=8, height=6):
    data = bytearray()
    for y in range(height):
        for x in range(width):
            data.extend(((x * 40) % 256, (y * 50) % 256, (x * y * 13) % 256, 200 + x))
    return RasterBuffer(width, height, bytes(data))


def png_bytes(img):
    buffer = io.BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


def test_scenario_uniform_gray_default_config():
    raster = RasterBuffer.filled(3, 3, (100, 100, 100, 255))
    config = PipelineConfig()

    gray = to_grayscale(raster)
    assert gray.pixel(1, 1) == (100, 100, 100, 255)

    quantized = quantize_tones(gray, config.tone_levels)
    assert quantized.pixel(1, 1)[0] == 85

    edges = detect_edges(gray, config.edge_threshold)
    assert edges.pixel(1, 1) == (255, 255, 255, 255)
    for x, y in [(0, 0), (1, 0), (2, 0), (0, 1), (2, 1), (0, 2), (1, 2), (2, 2)]:
        assert edges.pixel(x, y) == (0, 0, 0, 0)

    out = MangaPipeline(config).process(raster)

    assert out.pixel(1, 1) == (66, 66, 66, 255)
    # Uncomputed border pixels ink the frame; alpha comes from the shaded buffer.
    for x, y in [(0, 0), (1, 0), (2, 0), (0, 1), (2, 1), (0, 2), (1, 2), (2, 2)]:
        assert out.pixel(x, y) == (0, 0, 0, 255)


def test_scenario_zero_shadow_strength():
    raster = RasterBuffer(3, 1, bytes((85, 85, 85, 255, 255, 255, 255, 255, 170, 170, 170, 255)))

    shaded = cell_shade(quantize_tones(raster, DEFAULT_TONE_LEVELS), 0.0)

    assert shaded.pixel(0, 0)[0] == 85
    assert shaded.pixel(1, 0)[0] == 255
    assert shaded.pixel(2, 0)[0] == 170

    highlight = cell_shade(RasterBuffer(1, 1, bytes((200, 200, 200, 255))), 0.0)
    assert highlight.pixel(0, 0)[0] == 210


def test_render_matches_stage_composition():
    raster = pattern_raster()
    config = PipelineConfig()

    gray = to_grayscale(raster)
    edges = detect_edges(gray, config.edge_threshold)
    shaded = cell_shade(quantize_tones(gray, config.tone_levels), config.shadow_strength)
    out = render(raster, config)

    assert out == composite_edges(edges, shaded)
    for y in range(raster.height):
        for x in range(raster.width):
            if edges.pixel(x, y)[0] == 0:
                assert out.pixel(x, y)[:3] == (0, 0, 0)
            else:
                assert out.pixel(x, y) == shaded.pixel(x, y)
            assert out.pixel(x, y)[3] == raster.pixel(x, y)[3]


def test_process_is_deterministic():
    pipeline = MangaPipeline()
    raster = pattern_raster(10, 7)

    first = pipeline.process(raster)
    second = pipeline.process(RasterBuffer(raster.width, raster.height, raster.pixels))

    assert first.pixels == second.pixels
    assert first is not raster


def test_process_accepts_encoded_bytes():
    img = Image.new("RGB", (5, 4), color=(100, 100, 100))

    out = MangaPipeline().process(png_bytes(img))

    assert out.size == (5, 4)
    assert out.pixel(2, 2) == (66, 66, 66, 255)


def test_process_uses_explicit_config_without_storing_it():
    pipeline = MangaPipeline()
    raster = RasterBuffer.filled(3, 3, (100, 100, 100, 255))

    out = pipeline.process(raster, PipelineConfig(shadow_strength=0.0))

    assert out.pixel(1, 1) == (85, 85, 85, 255)
    assert pipeline.config == PipelineConfig()


def test_render_png_round_trips_through_pillow():
    png = MangaPipeline().render_png(pattern_raster())

    img = Image.open(io.BytesIO(png))
    assert img.size == (8, 6)
    assert img.mode == "RGBA"


def test_target_size_scales_input():
    pipeline = MangaPipeline(target_size=(6, 4))
    img = Image.new("RGB", (12, 8), color=(30, 60, 90))

    assert pipeline.process(img).size == (6, 4)


def test_edge_mask_uses_current_threshold():
    pipeline = MangaPipeline()
    img = Image.new("L", (3, 3), color=0)
    img.putpixel((2, 0), 10)
    img.putpixel((2, 1), 10)
    img.putpixel((2, 2), 10)

    assert pipeline.edge_mask(img).pixel(1, 1)[0] == 255
    pipeline.configure({"edgeThreshold": 39})
    assert pipeline.edge_mask(img).pixel(1, 1)[0] == 0


# Decoding


def test_decode_rejects_garbage_bytes():
    with pytest.raises(InvalidInput):
        decode_image(b"not an image")


def test_decode_rejects_unsupported_type():
    with pytest.raises(InvalidInput):
        decode_image(12345)


def test_decode_missing_file(tmp_path):
    with pytest.raises(InvalidInput):
        decode_image(str(tmp_path / "missing.png"))


def test_decode_reads_path(tmp_path):
    path = tmp_path / "source.png"
    Image.new("RGBA", (2, 3), color=(1, 2, 3, 4)).save(path)

    raster = decode_image(path)

    assert raster.size == (2, 3)
    assert raster.pixel(0, 0) == (1, 2, 3, 4)


def test_process_garbage_raises_invalid_input():
    with pytest.raises(InvalidInput):
        MangaPipeline().process(b"\x89PNG broken")


def test_data_url_helpers():
    png = encode_png(RasterBuffer.filled(1, 1, (9, 9, 9, 255)))
    url = encode_data_url(png)

    assert url.startswith("data:image/png;base64,")
    assert decode_data_url(url) == png
    assert decode_data_url(url.split(",", 1)[1]) == png


def test_data_url_rejects_invalid_base64():
    with pytest.raises(InvalidInput):
        decode_data_url("data:image/png;base64,@@@")


# Configuration


def test_default_config_values():
    config = PipelineConfig()

    assert config.edge_threshold == 50
    assert config.shadow_strength == 1.5
    assert config.tone_levels == DEFAULT_TONE_LEVELS


def test_config_from_settings_uses_environment_defaults():
    config = PipelineConfig.from_settings(SETTINGS)

    assert config.edge_threshold == SETTINGS.edge_threshold
    assert config.shadow_strength == SETTINGS.shadow_strength
    assert len(config.tone_levels) == SETTINGS.tone_steps


def test_configure_merges_only_given_fields():
    pipeline = MangaPipeline()

    updated = pipeline.configure({"edgeThreshold": 30})

    assert updated.edge_threshold == 30
    assert updated.shadow_strength == 1.5
    assert pipeline.config is updated


def test_configure_accepts_snake_case_keys():
    pipeline = MangaPipeline()

    pipeline.configure({"shadow_strength": 0, "edge_threshold": "12.5"})

    assert pipeline.config.shadow_strength == 0.0
    assert pipeline.config.edge_threshold == 12.5


def test_configure_tone_levels_keep_order_and_allow_gaps():
    pipeline = MangaPipeline()

    pipeline.configure(
        {"toneLevels": [{"min": 100, "max": 255, "value": 20}, {"min": 0, "max": 200, "value": 10.0}]}
    )

    assert pipeline.config.tone_levels == (ToneLevel(100, 255, 20), ToneLevel(0, 200, 10))


def test_configure_tone_steps_regenerates_table():
    pipeline = MangaPipeline()

    pipeline.configure({"toneSteps": 2})

    assert pipeline.config.tone_levels == build_tone_levels(2)


def test_configure_tone_levels_win_over_tone_steps():
    pipeline = MangaPipeline()

    pipeline.configure({"toneSteps": 8, "toneLevels": [[0, 255, 128]]})

    assert pipeline.config.tone_levels == (ToneLevel(0, 255, 128),)


def test_configure_preset_then_explicit_override():
    pipeline = MangaPipeline()

    pipeline.configure({"preset": "dramatic", "shadowStrength": 0.5})

    assert pipeline.config.edge_threshold == 25
    assert pipeline.config.shadow_strength == 0.5


def test_configure_ignores_unknown_keys():
    pipeline = MangaPipeline()

    assert pipeline.configure({"toneColor": "red"}) == PipelineConfig()


@pytest.mark.parametrize(
    "options, bad_key",
    [
        ({"edgeThreshold": 0}, "edgeThreshold"),
        ({"edgeThreshold": -5}, "edgeThreshold"),
        ({"edgeThreshold": math.inf}, "edgeThreshold"),
        ({"edgeThreshold": math.nan}, "edgeThreshold"),
        ({"edgeThreshold": "sharp"}, "edgeThreshold"),
        ({"edgeThreshold": True}, "edgeThreshold"),
        ({"shadowStrength": -0.1}, "shadowStrength"),
        ({"shadowStrength": math.inf}, "shadowStrength"),
        ({"toneLevels": [{"min": 200, "max": 100, "value": 0}]}, "toneLevels"),
        ({"toneLevels": [{"min": 0, "max": 256, "value": 0}]}, "toneLevels"),
        ({"toneLevels": [{"min": 0, "max": 10}]}, "toneLevels"),
        ({"toneLevels": [{"min": 0, "max": 10, "value": 1.5}]}, "toneLevels"),
        ({"toneLevels": "0-255"}, "toneLevels"),
        ({"toneSteps": 1}, "toneSteps"),
        ({"preset": "noir"}, "preset"),
    ],
)
def test_configure_rejects_invalid_values_and_keeps_previous(options, bad_key):
    pipeline = MangaPipeline()
    pipeline.configure({"edgeThreshold": 42})
    before = pipeline.config

    with pytest.raises(InvalidConfig) as excinfo:
        pipeline.configure(dict(options, shadowStrength=options.get("shadowStrength", 2.0)))

    assert bad_key in excinfo.value.errors
    assert pipeline.config is before


def test_configure_rejects_non_mapping():
    with pytest.raises(InvalidConfig):
        MangaPipeline().configure(["edgeThreshold", 10])


def test_config_as_dict_uses_wire_names():
    assert PipelineConfig().as_dict() == {
        "edgeThreshold": 50.0,
        "shadowStrength": 1.5,
        "toneLevels": [
            {"min": 0, "max": 63, "value": 0},
            {"min": 64, "max": 127, "value": 85},
            {"min": 128, "max": 191, "value": 170},
            {"min": 192, "max": 255, "value": 255},
        ],
    }
