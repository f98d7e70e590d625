"""Tests for the version middleware pipeline and its presets."""

import logging

import pytest
from pydantic import ValidationError

from deck_schema.detect import is_v1_element, is_v2_element
from deck_schema.errors import InvalidInputError, UnsupportedElementError
from deck_schema.middleware import (
    MiddlewareConfig,
    ProcessingContext,
    VersionMiddleware,
    create_middleware,
    for_api,
    for_import,
    for_storage,
    for_ui,
)
from deck_schema.models import Version


def _make_v1_text(element_id="t1"):
    return {"id": element_id, "type": "text", "tag": "title", "left": 1, "top": 2, "width": 3, "height": 4,
            "content": "<p>x</p>", "defaultColor": {"color": "#123456"}}


def _make_v1_none():
    return {"id": "n1", "type": "none", "tag": "placeholder", "left": 0, "top": 0, "width": 0}


def _make_v2_line():
    return {"id": "l1", "type": "line", "left": 5, "top": 6, "width": 7, "color": "#000000",
            "style": "solid", "points": ["", ""], "start": [0, 0], "end": [7, 0]}


def _make_v2_chart():
    return {"id": "c1", "type": "chart", "left": 0, "top": 0, "width": 10, "height": 10}


API = ProcessingContext(source="api", target="api")


# ============================================================
# TARGET VERSION
# ============================================================

def test_preferred_version_wins():
    mw = VersionMiddleware()
    ctx = ProcessingContext(source="storage", target="storage", preferred_version="v1")
    assert mw.determine_target_version(ctx) == Version.v1


def test_storage_traffic_prefers_v2():
    mw = VersionMiddleware(default_version="v1")
    assert mw.determine_target_version({"source": "storage", "target": "ui"}) == Version.v2
    assert mw.determine_target_version({"source": "api", "target": "storage"}) == Version.v2


def test_other_contexts_use_default_version():
    mw = VersionMiddleware(default_version="v1")
    assert mw.determine_target_version({"source": "api", "target": "display"}) == Version.v1
    assert mw.determine_target_version({"source": "import", "target": "processing"}) == Version.v1


def test_invalid_context_rejected():
    with pytest.raises(ValidationError):
        VersionMiddleware().process_element(_make_v1_text(), {"source": "fax", "target": "api"})


# ============================================================
# PROCESS ELEMENT
# ============================================================

def test_process_element_converts_to_v2():
    result = VersionMiddleware().process_element(_make_v1_text(), API)
    assert is_v2_element(result.data)
    assert result.data["defaultColor"] == "#123456"
    assert result.stats.converted == 1
    assert result.stats.skipped == 0
    assert result.original is None
    assert result.processing_time >= 0


def test_process_element_none_warns():
    result = VersionMiddleware().process_element(_make_v1_none(), API)
    assert result.data is None
    assert result.stats.skipped == 1
    assert result.warnings == ["Could not convert element n1 to V2"]


def test_process_element_error_is_recorded():
    mw = VersionMiddleware(default_version="v1")
    result = mw.process_element(_make_v2_chart(), API)
    assert result.data is None
    assert result.stats.errors == 1
    assert "chart" in result.errors[0]


def test_process_element_throw_mode():
    mw = VersionMiddleware(default_version="v1", error_handling="throw")
    with pytest.raises(UnsupportedElementError):
        mw.process_element(_make_v2_chart(), API)


def test_preserve_original():
    element = _make_v1_text()
    result = VersionMiddleware(preserve_original=True).process_element(element, API)
    assert result.original is element


def test_auto_convert_off_passes_through():
    element = _make_v1_text()
    result = VersionMiddleware(auto_convert=False).process_element(element, API)
    assert result.data is element
    assert result.stats.converted == 0


def test_force_conversion_overrides_auto_convert_off():
    ctx = ProcessingContext(source="api", target="api", force_conversion=True)
    result = VersionMiddleware(auto_convert=False).process_element(_make_v1_text(), ctx)
    assert is_v2_element(result.data)


# ============================================================
# PROCESS ELEMENTS
# ============================================================

def test_process_elements_mixed_batch():
    result = VersionMiddleware().process_elements([_make_v1_text(), _make_v1_none(), _make_v2_line()], API)
    assert [el["id"] for el in result.data] == ["t1", "l1"]
    assert result.stats.processed == 3
    assert result.stats.converted == 2
    assert result.stats.skipped == 1
    assert any("Mixed versions" in w for w in result.warnings)
    assert "Skipped 1 elements that could not be converted" in result.warnings


def test_process_elements_error_aborts_batch():
    mw = VersionMiddleware(default_version="v1")
    result = mw.process_elements([_make_v2_line(), _make_v2_chart()], API)
    assert result.data == []
    assert result.stats.errors == 1
    assert result.errors[0].startswith("Batch processing failed")


def test_process_elements_to_v1():
    result = VersionMiddleware(default_version="v1").process_elements([_make_v2_line()], API)
    assert is_v1_element(result.data[0])
    assert result.data[0]["themeColor"] == {"color": "#000000"}


# ============================================================
# PRE / POST PROCESSING
# ============================================================

@pytest.mark.parametrize("data", [
    [_make_v1_text()],
    {"elements": [_make_v1_text()]},
    _make_v1_text(),
])
def test_preprocess_input_shapes(data):
    result = VersionMiddleware().preprocess_input(data, API)
    assert len(result.data) == 1
    assert is_v2_element(result.data[0])


@pytest.mark.parametrize("data", [None, 42, "elements", {}])
def test_preprocess_input_rejects_invalid(data):
    with pytest.raises(InvalidInputError, match="Invalid input data format"):
        VersionMiddleware().preprocess_input(data, API)


def test_postprocess_api_output():
    mw = VersionMiddleware(default_version="v1")
    result = mw.postprocess_output([_make_v2_line()], ProcessingContext(source="ui", target="api"))
    assert set(result.data) == {"elements", "metadata"}
    assert result.data["metadata"]["version"] == "v1"
    assert result.data["metadata"]["stats"]["processed"] == 1
    assert "processedAt" in result.data["metadata"]


def test_postprocess_storage_output():
    mw = VersionMiddleware()
    result = mw.postprocess_output([_make_v1_text()], ProcessingContext(source="ui", target="storage"))
    assert result.data["version"] == "v2"
    assert result.data["checksum"] == VersionMiddleware._checksum(result.data["elements"])
    assert 0 < len(result.data["checksum"]) <= 16


def test_checksum_is_deterministic_and_key_order_independent():
    assert VersionMiddleware._checksum([]) == "b62"
    assert VersionMiddleware._checksum({"a": 1, "b": 2}) == VersionMiddleware._checksum({"b": 2, "a": 1})
    assert VersionMiddleware._checksum([{"a": 1}]) != VersionMiddleware._checksum([{"a": 2}])


def test_postprocess_display_output():
    mw = VersionMiddleware()
    result = mw.postprocess_output([_make_v1_text(), _make_v2_line()], ProcessingContext(source="api", target="display"))
    assert result.data == [
        {"id": "t1", "type": "text", "left": 1, "top": 2, "width": 3, "height": 4},
        {"id": "l1", "type": "line", "left": 5, "top": 6, "width": 7, "height": 0},
    ]


def test_postprocess_other_targets_return_list():
    result = VersionMiddleware().postprocess_output([_make_v2_line()], ProcessingContext(source="api", target="ui"))
    assert isinstance(result.data, list)


# ============================================================
# LOGGING / CONFIG
# ============================================================

def test_log_level_none_is_silent(caplog):
    caplog.set_level(logging.DEBUG, logger="deck_schema.middleware")
    VersionMiddleware(log_level="none").process_elements([_make_v1_text(), _make_v2_line()], API)
    assert caplog.records == []


def test_log_level_filters_messages(caplog):
    caplog.set_level(logging.DEBUG, logger="deck_schema.middleware")
    VersionMiddleware(log_level="warn").process_elements([_make_v1_text(), _make_v2_line()], API)
    assert [r.levelno for r in caplog.records] == [logging.WARNING]
    assert "[VersionMiddleware] Compatibility check found 1 issues" in caplog.text


def test_log_level_debug_emits_everything(caplog):
    caplog.set_level(logging.DEBUG, logger="deck_schema.middleware")
    VersionMiddleware(log_level="debug").process_element(_make_v1_text(), API)
    assert any(r.levelno == logging.DEBUG for r in caplog.records)


def test_update_and_get_config():
    mw = VersionMiddleware()
    mw.update_config(default_version="v1", log_level="none")
    config = mw.get_config()
    assert config.default_version == Version.v1
    config.log_level = "debug"
    assert mw.config.log_level == "none"


def test_update_config_validates():
    with pytest.raises(ValidationError):
        VersionMiddleware().update_config(error_handling="explode")


# ============================================================
# PRESETS / HELPERS
# ============================================================

def test_presets():
    assert create_middleware("api").config == MiddlewareConfig()
    storage = create_middleware("storage").config
    assert storage.preserve_original and storage.error_handling == "skip"
    assert create_middleware("ui").config.log_level == "none"
    assert create_middleware("import", default_version="v1").config.default_version == Version.v1


def test_unknown_preset():
    with pytest.raises(ValueError, match="Unknown middleware preset"):
        create_middleware("batch")


def test_for_api_wraps_single_element():
    result = for_api(_make_v1_text())
    assert result.data["metadata"]["version"] == "v2"
    assert is_v2_element(result.data["elements"][0])


def test_for_storage():
    elements = [_make_v1_text()]
    result = for_storage(elements)
    assert set(result.data) == {"version", "elements", "checksum"}
    assert result.original is elements


def test_for_ui():
    result = for_ui([_make_v2_line()])
    assert result.data[0]["height"] == 0


def test_for_import_to_v1():
    result = for_import({"elements": [_make_v2_line()]}, preferred_version="v1")
    assert is_v1_element(result.data[0])
    assert result.original is not None
