"""
Detection of brittle Playwright locators and the deterministic rewrite tables.

Both tables are ordered data: ``BRITTLE_LOCATOR_PATTERNS`` decides which
expressions are reported, ``ROLE_FAMILIES`` decides which semantic query a
text fragment becomes. The first matching entry wins.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

# page.locator('<selector>') with matching quotes on both sides.
BRITTLE_LOCATOR_PATTERNS: Tuple[Tuple[str, Pattern[str]], ...] = (
    ("class", re.compile(r"""page\.locator\((['"])(\.[\w-]+)\1\)""")),
    ("id", re.compile(r"""page\.locator\((['"])(#[\w-]+)\1\)""")),
    ("xpath", re.compile(r"""page\.locator\((['"])(//(?:(?!\1)[^\n])+)\1\)""")),
)

_XPATH_ATTRIBUTE = re.compile(r"""@(?:id|class)\s*=\s*(['"])\s*([^'"\s]+)[^'"]*\1""")
_TEXT_LITERAL = re.compile(r"""text\(\)\s*[=,]\s*(['"])([^'"]{3,40})\1""")
_QUOTED_LITERAL = re.compile(r"""(['"])([^'"]*)\1""")

# (family, keyword pattern, replacement template), in priority order.
ROLE_FAMILIES: Tuple[Tuple[str, Pattern[str], str], ...] = (
    ("button", re.compile(r"button|btn|submit|cancel", re.IGNORECASE),
     "page.getByRole('button', {{ name: '{text}' }})"),
    ("input", re.compile(r"input|field|email|password", re.IGNORECASE),
     "page.getByLabel('{text}')"),
    ("link", re.compile(r"link|anchor", re.IGNORECASE),
     "page.getByRole('link', {{ name: '{text}' }})"),
    ("heading", re.compile(r"heading|title|h[1-6]", re.IGNORECASE),
     "page.getByRole('heading', {{ name: '{text}' }})"),
)

EXACT_TEXT_TEMPLATE = "page.getByText('{text}', {{ exact: true }})"
TEST_ID_TEMPLATE = "page.getByTestId('{token}')"


@dataclass(frozen=True)
class BrittleLocator:
    """A fragile locating expression found in test source."""

    expression: str
    kind: str
    selector: str


def detect_brittle_locators(source: str) -> List[BrittleLocator]:
    """
    Find brittle locators, deduplicated by expression.

    Results are grouped by pattern in table order, and by position in the
    source within each pattern.
    """
    found: List[BrittleLocator] = []
    seen = set()

    for kind, pattern in BRITTLE_LOCATOR_PATTERNS:
        for match in pattern.finditer(source):
            expression = match.group(0)
            if expression in seen:
                continue
            seen.add(expression)
            found.append(BrittleLocator(expression=expression, kind=kind, selector=match.group(2)))

    return found


def normalize_test_id(token: str) -> str:
    return token.lower().replace("-", "_")


def extract_structural_token(locator: BrittleLocator) -> Optional[str]:
    """Class-like or id-like token encoded in the selector, if any."""
    if locator.kind in ("class", "id"):
        token = locator.selector[1:]
        return token or None

    match = _XPATH_ATTRIBUTE.search(locator.selector)
    if match:
        return match.group(2)
    return None


def structural_replacement(locator: BrittleLocator) -> Optional[str]:
    """Tier 1: rewrite as a lookup by test id."""
    token = extract_structural_token(locator)
    if not token:
        return None
    return TEST_ID_TEMPLATE.format(token=normalize_test_id(token))


def extract_text_fragment(locator: BrittleLocator) -> Optional[str]:
    """
    Quoted text of 3 to 40 characters inside the selector.

    A ``text()='...'`` or ``contains(text(), '...')`` literal wins; otherwise
    the first quoted literal of acceptable length. Literals are paired, so
    the gap between two quoted strings is never taken as text.
    """
    match = _TEXT_LITERAL.search(locator.selector)
    if match:
        return match.group(2)

    for literal in _QUOTED_LITERAL.finditer(locator.selector):
        if 3 <= len(literal.group(2)) <= 40:
            return literal.group(2)
    return None


def semantic_replacement(locator: BrittleLocator, surrounding: str) -> Optional[str]:
    """
    Tier 2: rewrite a quoted text fragment as a role, label or text query.

    Args:
        locator: Brittle locator to rewrite
        surrounding: Source text around the expression, matched against
            the role keyword families
    """
    text = extract_text_fragment(locator)
    if not text:
        return None

    for _family, keywords, template in ROLE_FAMILIES:
        if keywords.search(surrounding):
            return template.format(text=text)
    return EXACT_TEXT_TEMPLATE.format(text=text)


def lines_around(source: str, expression: str, radius: int) -> str:
    """
    Source lines spanning the first occurrence of ``expression``.

    ``radius`` extra lines are included on each side; with a radius of 0
    only the line(s) holding the expression are returned.
    """
    index = source.find(expression)
    if index == -1:
        return ""

    lines = source.splitlines()
    first = source.count("\n", 0, index)
    last = first + expression.count("\n")
    start = max(0, first - radius)
    end = min(len(lines), last + radius + 1)
    return "\n".join(lines[start:end])


def apply_replacement(source: str, original: str, replacement: str) -> str:
    """Replace the first textual occurrence only."""
    return source.replace(original, replacement, 1)


def clean_generated_locator(
    reply: str, prefix: str = "page.", max_length: int = 200
) -> Optional[str]:
    """
    Validate a generated locator reply.

    Whitespace and backticks are stripped; the rest must start with the
    locator prefix and stay under the length ceiling.
    """
    text = (reply or "").strip().strip("`").strip()
    if text.startswith(prefix) and len(text) < max_length:
        return text
    return None
