import pytest

from engine import PDFEngine
from engine.config import EngineConfig, RedactionOptions, ReflowOptions, LineReconstructionOptions
from utils.validation import PdfValidationError


def test_default_config_is_valid():
    assert EngineConfig.default().validate()


@pytest.mark.parametrize("config", [
    EngineConfig(timeout_seconds=0),
    EngineConfig(max_file_size_mb=0),
    EngineConfig(enable_text_processor=False),
    EngineConfig(redaction_options={"padding": -1}),
    EngineConfig(reflow_options={"title_min_size": 30}),
    EngineConfig(line_options={"y_tolerance": -0.5}),
])
def test_invalid_configs(config):
    assert not config.validate()


def test_nested_options_from_dicts():
    config = EngineConfig(redaction_options={"padding": 3.0}, reflow_options={"margin": 50})

    assert config.get_redaction_options().padding == 3.0
    assert config.get_reflow_options().margin == 50
    assert config.get_line_options() == LineReconstructionOptions()


def test_unknown_keys_are_ignored():
    config = EngineConfig.from_dict({"max_file_size_mb": 10, "bogus": True})

    assert config.max_file_size_mb == 10


def test_to_dict_expands_option_defaults():
    data = EngineConfig().to_dict()

    assert data["redaction_options"]["draw_font_size"] == RedactionOptions().draw_font_size
    assert data["reflow_options"]["default_page_size"] == (612.0, 792.0)
    assert EngineConfig.from_dict(data).get_reflow_options() == ReflowOptions()


def test_engine_rejects_invalid_config(call_now_pdf):
    with pytest.raises(PdfValidationError):
        PDFEngine(call_now_pdf, config=EngineConfig(timeout_seconds=0))


def test_config_dict_lists_every_engine_setting():
    data = EngineConfig().to_dict()

    assert set(data) == {
        "enable_text_processor", "enable_redactor", "enable_reflow_renderer",
        "line_options", "redaction_options", "reflow_options",
        "timeout_seconds", "max_file_size_mb", "max_memory_mb", "validate_on_open",
    }
    assert set(data["line_options"]) == {"y_tolerance", "word_gap_tolerance", "run_break_displacement"}
