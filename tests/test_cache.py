from manga_filter.infrastructure.cache import (
    ResponseCache,
    last_good_png,
    remember_last_good,
    render_key,
)
from manga_filter.processing.pipeline import PipelineConfig


def test_response_cache_eviction_limit():
    cache = ResponseCache(ttl=60, max_entries=16)

    for idx in range(20):
        cache.put(f"key-{idx}", b"data")

    assert len(cache) == 16

    # Oldest entries go first.
    assert cache.get("key-0") is None
    assert cache.get("key-3") is None
    assert cache.get("key-4") == b"data"


def test_response_cache_overwrite_does_not_evict():
    cache = ResponseCache(ttl=60, max_entries=2)
    cache.put("a", b"1")
    cache.put("b", b"2")

    cache.put("a", b"3")

    assert cache.get("a") == b"3"
    assert cache.get("b") == b"2"


def test_response_cache_expires_entries():
    cache = ResponseCache(ttl=-1, max_entries=4)
    cache.put("key", b"data")

    assert cache.get("key") is None
    assert len(cache) == 0


def test_response_cache_disabled_when_size_zero():
    cache = ResponseCache(ttl=60, max_entries=0)
    cache.put("key", b"data")

    assert cache.get("key") is None


def test_render_key_depends_on_source_and_config():
    base = render_key(b"image", PipelineConfig())

    assert base == render_key(b"image", PipelineConfig())
    assert base != render_key(b"other", PipelineConfig())
    assert base != render_key(b"image", PipelineConfig(edge_threshold=10.0))


def test_last_good_png_roundtrip():
    remember_last_good(b"png-bytes")

    assert last_good_png() == b"png-bytes"
