import json
import os

import pytest
from locator_extractor.core.aggregator import AggregateSnapshot
from locator_extractor.layers.sense.element_recorder import ElementRecord, MetadataError
from locator_extractor.reporters import LocatorWriter, build_prompt
from locator_extractor.reporters.locator_writer import PROMPT_SEPARATOR, atomic_write


@pytest.fixture
def record():
    return ElementRecord(
        tag="button",
        id="loginBtn",
        class_attribute="btn primary",
        text="Login",
        css_selector="button#loginBtn",
        xpath_selector="/html[1]/body[1]/button[1]",
        visible=True,
        page_url="https://a",
    )


@pytest.mark.parametrize("framework, prompt_type, needle", [
    ("playwright", "locator", "page.getByRole"),
    ("playwright", "action", "Write one Playwright line"),
    ("selenium", "assertion", "Java assertion"),
    ("selenium", "locator", "By.cssSelector"),
    ("cypress", "locator", "cy.get()"),
    ("robot", "locator", "SeleniumLibrary"),
    ("bdd", "action", "Gherkin"),
    ("webdriverio", "locator", "using webdriverio"),
])
def test_prompt_per_framework(record, framework, prompt_type, needle):
    prompt = build_prompt(record, framework, prompt_type)
    assert needle in prompt
    assert '"css": "button#loginBtn"' in prompt


def test_custom_prompt_embeds_example(record):
    prompt = build_prompt(record, "custom", "locator", custom_example="LOGIN = $('#x')")
    assert "LOGIN = $('#x')" in prompt
    assert "Generate locator code" in prompt


def test_writer_outputs_json_and_prompts(tmp_path, record):
    record.advanced_metadata = MetadataError(error="boom")
    snapshot = AggregateSnapshot(records=[record], total_seen=2, visible_count=1, hidden_count=0)

    files = LocatorWriter(str(tmp_path)).write(snapshot, ["one", "two"], framework="selenium", run_name="run1")

    assert os.path.basename(files.locators_path) == "locators_run1.json"
    assert os.path.basename(files.prompts_path) == "copilot_prompts_selenium_run1.txt"
    data = json.loads(open(files.locators_path, encoding="utf-8").read())
    assert data[0]["css"] == "button#loginBtn"
    assert data[0]["advanced_metadata"] == {"error": "boom"}
    assert open(files.prompts_path, encoding="utf-8").read() == "one" + PROMPT_SEPARATOR + "two"
    assert not [f for f in os.listdir(tmp_path) if f.endswith(".tmp")]


def test_writer_handles_empty_run(tmp_path):
    files = LocatorWriter(str(tmp_path / "out")).write(AggregateSnapshot(), [])
    assert json.loads(open(files.locators_path, encoding="utf-8").read()) == []


def test_writer_survives_emoji_text(tmp_path, record):
    record.text = "Save \U0001F600"
    files = LocatorWriter(str(tmp_path)).write(AggregateSnapshot(records=[record]), [], run_name="emoji")

    data = json.loads(open(files.locators_path, encoding="utf-8").read())
    assert data[0]["text"] == "Save \U0001F600"


def test_failed_write_leaves_no_temp_file(tmp_path):
    target = str(tmp_path / "broken.json")
    with pytest.raises(UnicodeEncodeError):
        atomic_write(target, "bad \ud83d")

    assert os.listdir(tmp_path) == []
