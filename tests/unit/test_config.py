import json

from locator_extractor.core.config import ExtractorConfig, load_config


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(str(tmp_path / "nope.json"))
    assert config == ExtractorConfig()


def test_invalid_json_gives_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_config(str(path)) == ExtractorConfig()


def test_legacy_keys_are_aliased(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "url": "https://a",
        "tagFilter": ["button", "a"],
        "scanHidden": True,
        "outputDir": "out",
        "promptType": "assertion",
        "timeout": 30,
        "colour": "blue",
    }), encoding="utf-8")

    config = load_config(str(path))

    assert config.url == "https://a"
    assert config.filters == ["button", "a"]
    assert config.scan_hidden is True
    assert config.output_dir == "out"
    assert config.prompt_type == "assertion"
    assert config.timeout == 30
    assert config.extra == {"colour": "blue"}


def test_cli_overrides_win_but_none_is_ignored():
    base = ExtractorConfig(url="https://file", framework="cypress", timeout=10)
    merged = base.merged({"url": "https://cli", "framework": None, "timeout": 0})

    assert merged.url == "https://cli"
    assert merged.framework == "cypress"
    assert merged.timeout == 0
