"""Normalization of unreliable model output into a title and a description.

The model is asked for a JSON object but may wrap it in Markdown fences, add
emoji, or answer in plain prose. The answer is resolved into either a
:class:`StructuredResult` (a JSON object was found) or :class:`FreeText`,
and free text goes through regex and line-based fallbacks.

The returned title never contains an emoji, a code fence or the substring
"json" (case-insensitive). The description is cleaned best-effort only.
"""

import json
import re
from dataclasses import dataclass

# Emoji blocks, symbol blocks rendered as emoji, and invisible formatting
# characters (joiners, zero-width spaces, variation selectors, tags).
_EMOJI_CLASS = (
    "\U0001f600-\U0001f64f"
    "\U0001f300-\U0001f5ff"
    "\U0001f680-\U0001f6ff"
    "\U0001f1e0-\U0001f1ff"
    "\U00002600-\U000026ff"
    "\U00002700-\U000027bf"
    "\U0001f900-\U0001f9ff"
    "\U0001fa00-\U0001faff"
    "\U0001f018-\U0001f270"
    "\U0000238c-\U00002454"
    "\U000020d0-\U000020ff"
    "\U00002b05-\U00002b07\U00002b1b\U00002b1c\U00002b50\U00002b55"
    "\U0000203c\U00002049\U00003030\U0000303d\U00003297\U00003299"
    "\U0000fe00-\U0000fe0f"
    "\U0000200b-\U0000200d\U00002060\U0000feff"
    "\U000e0020-\U000e007f"
)
EMOJI_PATTERN = re.compile(f"[{_EMOJI_CLASS}]+")

CODE_FENCE = "```"
_FENCE_PATTERN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_LEADING_JSON_PATTERN = re.compile(r"^\s*json\s*", re.IGNORECASE)
_JSON_WORD_PATTERN = re.compile("json", re.IGNORECASE)

_TITLE_PATTERNS = (
    re.compile(r"[\"']?title[\"']?\s*[:=]\s*[\"']?([^\"'\n]+)", re.IGNORECASE),
    re.compile(r"t[íi]tulo[:\s]+(.+?)(?:\n|$)", re.IGNORECASE),
    re.compile(r"title[:\s]+(.+?)(?:\n|$)", re.IGNORECASE),
)
# Only the quoted English form stops at quotes; labelled lines keep apostrophes
_DESCRIPTION_PATTERNS = (
    re.compile(
        r"[\"']?description[\"']?\s*[:=]\s*[\"']?([^\"']+)",
        re.IGNORECASE | re.DOTALL,
    ),
    re.compile(r"descri[çc][ãa]o[:\s]+(.+?)(?:\n|$)", re.IGNORECASE | re.DOTALL),
    re.compile(r"description[:\s]+(.+?)(?:\n|$)", re.IGNORECASE | re.DOTALL),
)

MIN_TITLE_LINE_LENGTH = 10
DEFAULT_TITLE = "Produto"


@dataclass(frozen=True)
class CopyResult:
    title: str
    description: str


@dataclass(frozen=True)
class StructuredResult:
    """The model answered with a JSON object."""

    title: str
    description: str


@dataclass(frozen=True)
class FreeText:
    """The model answered with something that is not a usable JSON object."""

    text: str


type UpstreamAnswer = StructuredResult | FreeText


def strip_emoji(text: str) -> str:
    """Remove emoji and invisible formatting characters."""
    return EMOJI_PATTERN.sub("", text)


def strip_code_fences(text: str) -> str:
    """Remove Markdown fence markers and a leading ``json`` token."""
    text = _FENCE_PATTERN.sub("", text)
    return _LEADING_JSON_PATTERN.sub("", text, count=1)


def clean_text(text: str | None) -> str:
    if not text:
        return ""
    return strip_code_fences(strip_emoji(text)).strip()


def find_json_object(text: str) -> str | None:
    """Return the first balanced top-level ``{...}`` span, if any.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace, try the next one
        start = text.find("{", start + 1)
    return None


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def parse_answer(raw: str) -> UpstreamAnswer:
    """Resolve the raw model text into a structured or free-text answer."""
    cleaned = clean_text(raw)
    span = find_json_object(cleaned)
    if span is not None:
        try:
            data = json.loads(span, strict=False)
        except ValueError:
            data = None
        if isinstance(data, dict) and ("title" in data or "description" in data):
            return StructuredResult(
                title=_as_text(data.get("title")),
                description=_as_text(data.get("description")),
            )
    return FreeText(text=cleaned)


def _first_labelled_value(patterns: tuple[re.Pattern[str], ...], text: str) -> str:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return ""


def extract_from_free_text(text: str) -> StructuredResult:
    """Pull a title and a description out of prose.

    Labelled lines (``title:``/``título:`` and ``description:``/``descrição:``)
    win; otherwise the first non-trivial line is the title and the rest is
    the description.
    """
    lines = [
        line
        for line in text.split("\n")
        if line.strip() and not line.lstrip().startswith(CODE_FENCE)
    ]

    title = _first_labelled_value(_TITLE_PATTERNS, text)
    if not title:
        title = next(
            (line for line in lines if len(line.strip()) > MIN_TITLE_LINE_LENGTH), ""
        )

    description = _first_labelled_value(_DESCRIPTION_PATTERNS, text)
    if not description:
        description = "\n".join(lines[1:])

    return StructuredResult(title=title, description=description)


def has_forbidden_title_content(title: str) -> bool:
    return (
        "json" in title.lower()
        or CODE_FENCE in title
        or EMOJI_PATTERN.search(title) is not None
    )


def _sanitize_fallback_title(product_name: str) -> str:
    title = strip_emoji(product_name).replace("`", "")
    previous = None
    while previous != title:
        previous = title
        title = _JSON_WORD_PATTERN.sub("", title)
    title = " ".join(title.split())
    return title or DEFAULT_TITLE


def guard_title(title: str, product_name: str) -> str:
    """Replace a title that still carries forbidden content.

    The product name is used verbatim when it is itself clean.
    """
    if not title or has_forbidden_title_content(title):
        if has_forbidden_title_content(product_name):
            return _sanitize_fallback_title(product_name)
        return product_name
    return title


def normalize_copy(raw: str, product_name: str) -> CopyResult:
    """Turn raw model text into the final title and description.

    Args:
        raw: Text returned by the model
        product_name: Product name typed by the user, the title of last resort

    Returns:
        CopyResult with a guarded title and a cleaned description
    """
    answer = parse_answer(raw)
    match answer:
        case StructuredResult():
            extracted = answer
            fallback_description = ""
        case FreeText(text=text):
            extracted = extract_from_free_text(text)
            fallback_description = text

    title = clean_text(extracted.title or product_name)
    description = clean_text(extracted.description or fallback_description)
    if not description:
        description = clean_text(raw)

    return CopyResult(title=guard_title(title, product_name), description=description)
