"""
Prompt Builder - Copilot prompts for captured elements.

Renders one natural-language prompt per record for the chosen test
framework and prompt type (locator, action or assertion).
"""

from typing import TYPE_CHECKING
import json

if TYPE_CHECKING:
    from locator_extractor.layers.sense.element_recorder import ElementRecord

FRAMEWORKS = ["playwright", "selenium", "cypress", "robot", "bdd", "custom"]
PROMPT_TYPES = ["locator", "action", "assertion"]

_SELENIUM = {
    "action": (
        "You are writing a Selenium WebDriver (Java) test step.\n"
        "Given this element:\n{json}\n\n"
        "Write a single Java step that interacts with the element and includes a verification."
    ),
    "assertion": (
        "You are writing a Selenium WebDriver (Java) assertion.\n"
        "Given this element:\n{json}\n\n"
        "Write a Java assertion verifying visibility or state."
    ),
    "locator": (
        "You are an automation expert using Selenium WebDriver (Java).\n"
        "Generate the most stable locator using By.id, By.name, By.cssSelector, or By.xpath.\n\n"
        "Element details:\n{json}\n\n"
        "Return only the Java locator statement."
    ),
}

_PLAYWRIGHT = {
    "action": (
        "You are writing an automation step in Playwright (TypeScript/JavaScript).\n"
        "Given this element:\n{json}\n\n"
        "Write one Playwright line that interacts with the element and includes a simple verification."
    ),
    "assertion": (
        "You are writing an assertion in Playwright (TypeScript/JavaScript).\n"
        "Given this element:\n{json}\n\n"
        "Write a Playwright assertion checking visibility or text."
    ),
    "locator": (
        "You are an automation expert using Playwright.\n"
        "Generate the most stable locator using page.getByRole, page.getByTestId, or page.locator.\n\n"
        "Element details:\n{json}\n\n"
        "Return only the Playwright locator statement."
    ),
}

_SINGLE = {
    "cypress": (
        "You are an automation expert using Cypress (JavaScript).\n"
        "Generate the most stable Cypress locator using cy.get(), cy.contains(), or cy.xpath().\n\n"
        "Element details:\n{json}"
    ),
    "robot": (
        "You are writing a Robot Framework (SeleniumLibrary) locator.\n"
        "Given this element:\n{json}\n\n"
        "Return the most stable Robot locator string (id=, name=, css=, xpath=)."
    ),
    "bdd": (
        "You are writing a Gherkin (BDD) step.\n"
        "Given this element:\n{json}\n\n"
        'Write a "Then" or "When" step describing the element interaction or verification.'
    ),
}


def build_prompt(
    record: "ElementRecord",
    framework: str = "playwright",
    prompt_type: str = "locator",
    custom_example: str = "",
) -> str:
    """Render the prompt for ``record``; unknown frameworks get a generic prompt."""
    payload = json.dumps(record.to_dict(), indent=2, ensure_ascii=False)
    framework = (framework or "playwright").lower()

    if framework == "custom" and custom_example:
        return (
            "You are writing code for a custom test framework.\n"
            f"Example of element definition:\n{custom_example}\n\n"
            f"Given this element:\n{payload}\n\n"
            f"Generate {prompt_type} code following the same pattern."
        )
    if framework == "selenium":
        return _SELENIUM.get(prompt_type, _SELENIUM["locator"]).format(json=payload)
    if framework == "playwright":
        return _PLAYWRIGHT.get(prompt_type, _PLAYWRIGHT["locator"]).format(json=payload)
    if framework in _SINGLE:
        return _SINGLE[framework].format(json=payload)

    return (
        f"You are an automation engineer using {framework}.\n"
        f"Given this element:\n{payload}\n\n"
        "Generate the most stable locator or action step for this framework."
    )
