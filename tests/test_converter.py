"""Tests for the smart version converter, its strategies and presets."""

import logging
from types import MappingProxyType

import pytest

from deck_schema.converter import (
    SCORE_WEIGHTS,
    ConversionOptions,
    ConversionStrategy,
    SmartVersionConverter,
    auto_convert,
    create_converter,
    default_strategies,
    to_v1,
    to_v2,
)
from deck_schema.detect import is_v1_element, is_v2_element
from deck_schema.elements import text_to_v2
from deck_schema.errors import UnsupportedElementError, ValidationFailedError
from deck_schema.models import Version


# ============================================================
# HELPERS
# ============================================================

def _make_v1_text(element_id="t1"):
    return {"id": element_id, "type": "text", "tag": "title", "left": 0, "top": 0, "width": 100, "height": 20,
            "content": "<p>Hi</p>", "defaultColor": {"color": "#222222"}}


def _make_v1_shape():
    return {"id": "s1", "type": "shape", "tag": "deco", "left": 0, "top": 0, "width": 50, "height": 50,
            "viewBox": [200, 200], "path": "M0 0", "fixedRatio": False, "themeFill": {"color": "#ff0000"}}


def _make_v1_image():
    return {"id": "i1", "type": "image", "index": 1, "left": 0, "top": 0, "width": 50, "height": 50,
            "src": "a.png", "size": "cover", "loading": False}


def _make_v1_none():
    return {"id": "n1", "type": "none", "tag": "placeholder", "left": 0, "top": 0, "width": 0}


def _make_v2_text(element_id="v2t", **extra):
    el = {"id": element_id, "type": "text", "left": 0, "top": 0, "width": 100, "height": 20,
          "content": "", "defaultColor": "#000000"}
    el.update(extra)
    return el


def _make_v2_chart():
    return {"id": "c1", "type": "chart", "left": 0, "top": 0, "width": 10, "height": 10}


def _make_strategy(name, priority, convert=None, element_type="text"):
    return ConversionStrategy(
        name=name,
        from_version=Version.v1,
        to_version=Version.v2,
        priority=priority,
        validate=lambda el: el.get("type") == element_type,
        convert=convert or text_to_v2,
    )


# ============================================================
# STRATEGY REGISTRY
# ============================================================

def test_default_strategy_table():
    names = [s.name for s in SmartVersionConverter().strategies]
    assert names == ["v1-to-v2-text", "v1-to-v2-shape", "v1-to-v2-image", "v1-to-v2-line", "v2-to-v1-generic"]
    priorities = {s.name: s.priority for s in default_strategies()}
    assert priorities["v1-to-v2-text"] == 100
    assert priorities["v2-to-v1-generic"] == 50


def test_strategy_accepts_string_versions():
    strategy = ConversionStrategy(name="x", from_version="v2", to_version="v1", convert=lambda el: el)
    assert strategy.from_version == Version.v2
    assert strategy.accepts({"anything": True})


def test_register_strategy_overwrites_by_name():
    converter = SmartVersionConverter()
    count = len(converter.strategies)
    converter.register_strategy(_make_strategy("v1-to-v2-text", 7))
    assert len(converter.strategies) == count
    assert converter.get_applicable_strategy(_make_v1_text(), "v2").priority == 7


@pytest.mark.parametrize("order", [("low", "high"), ("high", "low")])
def test_higher_priority_wins_regardless_of_order(order):
    strategies = {"low": _make_strategy("low", 150), "high": _make_strategy("high", 200)}
    converter = SmartVersionConverter(custom_strategies=[strategies[name] for name in order])
    assert converter.get_applicable_strategy(_make_v1_text(), Version.v2).name == "high"


def test_priority_ties_go_to_first_registered():
    converter = SmartVersionConverter(custom_strategies=[_make_strategy("first", 300), _make_strategy("second", 300)])
    assert converter.get_applicable_strategy(_make_v1_text(), "v2").name == "first"


def test_no_strategy_when_already_at_target():
    converter = SmartVersionConverter()
    assert converter.get_applicable_strategy(_make_v2_text(), "v2") is None
    assert converter.get_applicable_strategy(_make_v1_text(), "v1") is None


def test_no_strategy_for_v1_none():
    assert SmartVersionConverter().get_applicable_strategy(_make_v1_none(), "v2") is None


# ============================================================
# SMART CONVERT
# ============================================================

def test_smart_convert_v1_to_v2():
    result = SmartVersionConverter().smart_convert(_make_v1_text(), "v2")
    assert is_v2_element(result)
    assert result["defaultColor"] == "#222222"


def test_smart_convert_v2_to_v1():
    result = SmartVersionConverter().smart_convert(_make_v2_text(), Version.v1)
    assert is_v1_element(result)


def test_smart_convert_read_only_mapping():
    element = MappingProxyType(_make_v1_text())
    converter = SmartVersionConverter()
    assert converter.get_applicable_strategy(element, "v2").name == "v1-to-v2-text"

    result = converter.smart_convert(element, "v2")
    assert is_v2_element(result)
    assert result["defaultColor"] == "#222222"


def test_smart_convert_without_strategy_returns_input():
    element = _make_v2_text()
    assert SmartVersionConverter().smart_convert(element, "v2") is element
    none_el = _make_v1_none()
    assert SmartVersionConverter().smart_convert(none_el, "v2") is none_el


def test_skip_mode_returns_none_on_error():
    converter = create_converter(error_handling="skip")
    assert converter.smart_convert(_make_v2_chart(), "v1") is None


def test_throw_mode_reraises():
    converter = create_converter(error_handling="throw")
    with pytest.raises(UnsupportedElementError, match="chart"):
        converter.smart_convert(_make_v2_chart(), "v1")


def test_result_validation_failure():
    identity = _make_strategy("identity", 500, convert=lambda el: el)
    converter = SmartVersionConverter(ConversionOptions(error_handling="throw"), custom_strategies=[identity])
    with pytest.raises(ValidationFailedError, match="v2"):
        converter.smart_convert(_make_v1_text(), "v2")


def test_result_validation_can_be_disabled():
    identity = _make_strategy("identity", 500, convert=lambda el: el)
    converter = SmartVersionConverter(ConversionOptions(validate_output=False), custom_strategies=[identity])
    element = _make_v1_text()
    assert converter.smart_convert(element, "v2") is element


def test_default_mode_falls_back_to_auto_adapter():
    def broken(el):
        raise RuntimeError("boom")

    converter = SmartVersionConverter(
        ConversionOptions(error_handling="default"),
        custom_strategies=[_make_strategy("broken", 500, convert=broken)],
    )
    result = converter.smart_convert(_make_v1_text(), "v2")
    assert is_v2_element(result)
    assert result["id"] == "t1"


def test_default_mode_logs_when_fallback_fails(caplog):
    converter = create_converter("aggressive")
    with caplog.at_level(logging.WARNING, logger="deck_schema.converter"):
        assert converter.smart_convert(_make_v2_chart(), "v1") is None
    assert "Fallback conversion of element c1" in caplog.text


def test_callbacks():
    converted = []
    errors = []
    options = ConversionOptions(
        on_convert=lambda src, dst: converted.append((src["id"], dst["id"])),
        on_error=lambda exc, el: errors.append((type(exc).__name__, el["id"])),
    )
    converter = SmartVersionConverter(options)
    converter.smart_convert(_make_v1_text(), "v2")
    converter.smart_convert(_make_v2_chart(), "v1")
    assert converted == [("t1", "t1")]
    assert errors == [("UnsupportedElementError", "c1")]


def test_cache_returns_same_output_for_same_input():
    converter = create_converter(cache=True)
    element = _make_v1_text()
    first = converter.smart_convert(element, "v2")
    assert converter.smart_convert(element, "v2") is first
    assert converter.smart_convert(_make_v1_text(), "v2") is not first


def test_options_dump_excludes_callbacks():
    options = ConversionOptions(on_convert=lambda a, b: None)
    assert options.model_dump() == {
        "error_handling": "skip",
        "preserve_unsupported": False,
        "validate_output": True,
        "cache": False,
    }


# ============================================================
# BATCH
# ============================================================

def test_full_batch_migration():
    elements = [_make_v1_text(), _make_v1_shape(), _make_v1_image(), _make_v1_none()]
    result = SmartVersionConverter().smart_batch_convert(elements, "v2")
    assert len(result.converted) == 3
    assert len(result.failed) == 0
    assert result.stats.to_dict() == {"total": 4, "converted": 3, "failed": 0, "skipped": 1}
    assert all(is_v2_element(el) for el in result.converted)


def test_batch_keeps_elements_already_at_target():
    v2 = _make_v2_text()
    result = SmartVersionConverter().smart_batch_convert([_make_v1_text(), v2], "v2")
    assert len(result.converted) == 2
    assert result.converted[1] is v2
    assert result.stats.converted == 1
    assert result.stats.skipped == 1


def test_batch_failed_bucket():
    result = SmartVersionConverter().smart_batch_convert([_make_v2_text(), _make_v2_chart()], "v1")
    assert [el["id"] for el in result.failed] == ["c1"]
    assert result.stats.converted == 1
    assert result.stats.failed == 1


def test_conservative_preset_preserves_unsupported():
    elements = [_make_v1_text(), _make_v1_none()]
    result = create_converter("conservative").smart_batch_convert(elements, "v2")
    assert len(result.converted) == 2
    assert result.converted[1]["type"] == "none"
    assert result.stats.skipped == 1


def test_batch_logs_summary(caplog):
    with caplog.at_level(logging.INFO, logger="deck_schema.converter"):
        SmartVersionConverter().smart_batch_convert([_make_v1_text()], "v2")
    assert "1 converted, 0 failed, 0 skipped" in caplog.text


# ============================================================
# INFERENCE
# ============================================================

def test_infer_prefers_v2_for_v2_corpus():
    elements = [_make_v2_text("a", textType="title"), _make_v2_text("b")]
    rec = SmartVersionConverter().infer_best_strategy(elements)
    assert rec.recommended_version == Version.v2
    assert rec.confidence == 1.0
    assert rec.scores["v2"] == (
        SCORE_WEIGHTS["v2_majority"] + SCORE_WEIGHTS["v2_features"]
        + SCORE_WEIGHTS["compatibility"] + SCORE_WEIGHTS["forward_bias"]
    )
    assert "V2-only features detected" in rec.reasoning


def test_infer_prefers_v1_for_legacy_corpus_with_none():
    elements = [_make_v1_text(), _make_v1_shape(), _make_v1_none()]
    rec = SmartVersionConverter().infer_best_strategy(elements)
    assert rec.recommended_version == Version.v1
    assert rec.scores["v1"] > rec.scores["v2"]
    assert 0 < rec.confidence < 1
    assert "V2 compatibility issues found" in rec.reasoning


def test_v2_features_move_score_toward_v2():
    converter = SmartVersionConverter()
    plain = converter.infer_best_strategy([_make_v2_text()])
    featured = converter.infer_best_strategy([_make_v2_text(pattern="dots.png")])
    assert featured.scores["v2"] > plain.scores["v2"]
    assert featured.scores["v1"] == plain.scores["v1"]


def test_infer_empty_corpus():
    rec = SmartVersionConverter().infer_best_strategy([])
    assert rec.recommended_version == Version.v2
    assert rec.to_dict()["recommended_version"] == "v2"
    assert 0 <= rec.confidence <= 1


# ============================================================
# PREVIEW
# ============================================================

def test_preview_conversion():
    elements = [_make_v1_text(), _make_v2_text(), _make_v1_none()]
    preview = SmartVersionConverter().preview_conversion(elements, "v2")
    assert preview.summary.total == 3
    assert preview.summary.will_convert == 1
    assert preview.summary.will_skip == 1
    assert preview.summary.will_fail == 1
    assert [d.status for d in preview.details] == ["convert", "skip", "fail"]
    assert preview.details[0].strategy == "v1-to-v2-text"
    assert preview.details[0].element is elements[0]
    # dry run leaves input untouched
    assert elements[0]["tag"] == "title"


# ============================================================
# PRESETS / HELPERS
# ============================================================

def test_presets():
    assert create_converter().options.error_handling == "skip"
    conservative = create_converter("conservative").options
    assert conservative.preserve_unsupported and conservative.validate_output
    aggressive = create_converter("aggressive").options
    assert aggressive.error_handling == "default"
    assert aggressive.validate_output is False


def test_presets_are_independent_instances():
    a = create_converter()
    b = create_converter()
    a.register_strategy(_make_strategy("extra", 1))
    assert len(a.strategies) == len(b.strategies) + 1


def test_unknown_preset():
    with pytest.raises(ValueError, match="Unknown converter preset 'turbo'"):
        create_converter("turbo")


def test_to_v2_and_to_v1_helpers():
    assert len(to_v2([_make_v1_text(), _make_v1_none()])) == 1
    assert all(is_v1_element(el) for el in to_v1([_make_v2_text()]))


def test_auto_convert_helper():
    result = auto_convert([_make_v2_text("a", imageType="x"), _make_v2_text("b"), _make_v1_text()])
    assert result.strategy == Version.v2
    assert len(result.converted) == 3
    assert all(is_v2_element(el) for el in result.converted)
