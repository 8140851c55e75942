"""
Filter Matcher - Declarative admission rules for captured elements.

A filter set is parsed once from a comma-separated string such as
``"button, .btn, #login, [data-testid], [type='submit']"`` and then
evaluated with OR semantics against every candidate record, whether it
comes from a click or from a page walk.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple, Union
import re

from locator_extractor.core.exceptions import FilterSyntaxError

if TYPE_CHECKING:
    from locator_extractor.layers.sense.element_recorder import ElementRecord


@dataclass(frozen=True)
class TagName:
    name: str


@dataclass(frozen=True)
class ClassName:
    name: str


@dataclass(frozen=True)
class IdName:
    value: str


@dataclass(frozen=True)
class AttributeMatch:
    name: str
    value: Optional[str] = None


FilterExpression = Union[TagName, ClassName, IdName, AttributeMatch]
FilterSet = Tuple[FilterExpression, ...]

_NAME = re.compile(r"^[A-Za-z_][\w:.-]*$")
_ATTRIBUTE = re.compile(r"^\[\s*([^\s=\]]+)\s*(?:=\s*(.*?)\s*)?\]$", re.DOTALL)


def _split_tokens(spec: str) -> List[str]:
    """Split on commas that are not inside ``[...]``."""
    tokens: List[str] = []
    depth = 0
    current = []
    for char in spec:
        if char == "[":
            depth += 1
        elif char == "]" and depth:
            depth -= 1
        if char == "," and depth == 0:
            tokens.append("".join(current))
            current = []
        else:
            current.append(char)
    tokens.append("".join(current))
    return [token.strip() for token in tokens if token.strip()]


def parse_filter(token: str) -> FilterExpression:
    """Parse one filter token into its expression variant."""
    token = token.strip()
    if not token:
        raise FilterSyntaxError(token, "empty token")

    if token.startswith("["):
        match = _ATTRIBUTE.match(token)
        if not match:
            raise FilterSyntaxError(token, "expected [attr] or [attr=value]")
        name, value = match.group(1), match.group(2)
        if value is not None:
            value = value.strip("'\"")
        return AttributeMatch(name=name, value=value)

    if token[0] in ".#":
        name = token[1:]
        if not name or any(ch.isspace() for ch in name):
            raise FilterSyntaxError(token, "missing or malformed name")
        return ClassName(name) if token[0] == "." else IdName(name)

    if not _NAME.match(token):
        raise FilterSyntaxError(token, "not a tag name")
    return TagName(token.lower())


def parse_filter_set(spec: Union[str, Sequence[str], None]) -> FilterSet:
    """
    Parse a filter specification into a tuple of expressions.

    Accepts the CLI form (one comma-separated string) or the config-file
    form (a list of tokens). ``None`` and empty input mean "no filter".
    """
    if spec is None:
        return ()
    if isinstance(spec, str):
        tokens: Iterable[str] = _split_tokens(spec)
    else:
        tokens = [str(token).strip() for token in spec if str(token).strip()]
    return tuple(parse_filter(token) for token in tokens)


def _matches_one(record: "ElementRecord", expression: FilterExpression) -> bool:
    if isinstance(expression, TagName):
        return (record.tag or "").lower() == expression.name.lower()
    if isinstance(expression, ClassName):
        return expression.name in set((record.class_attribute or "").split())
    if isinstance(expression, IdName):
        return (record.id or "") == expression.value
    if isinstance(expression, AttributeMatch):
        attributes = record.attributes or {}
        if expression.value is None:
            return expression.name in attributes
        return attributes.get(expression.name) == expression.value
    raise TypeError(f"Unknown filter expression: {expression!r}")


def matches(record: "ElementRecord", filter_set: Optional[Sequence[FilterExpression]]) -> bool:
    """True if any expression matches; an empty or missing set matches everything."""
    if not filter_set:
        return True
    return any(_matches_one(record, expression) for expression in filter_set)


def describe_filter_set(filter_set: Optional[Sequence[FilterExpression]]) -> str:
    """Render a parsed filter set back into its token form, for logs and banners."""
    if not filter_set:
        return "*"
    rendered = []
    for expression in filter_set:
        if isinstance(expression, TagName):
            rendered.append(expression.name)
        elif isinstance(expression, ClassName):
            rendered.append(f".{expression.name}")
        elif isinstance(expression, IdName):
            rendered.append(f"#{expression.value}")
        elif expression.value is None:
            rendered.append(f"[{expression.name}]")
        else:
            rendered.append(f"[{expression.name}={expression.value}]")
    return ", ".join(rendered)
