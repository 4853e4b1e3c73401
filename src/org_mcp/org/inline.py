"""Inline markup parser.

Turns a line or paragraph of org text into RichText. Alternatives are tried
left to right at each position; anything that does not parse degrades to
plain text, so this parser never fails.

Emphasis boundary rules (a conservative subset of org's):
- an opening marker must be at the start of the text or follow a
  non-alphanumeric character, and must not be followed by whitespace
- a closing marker must not follow whitespace and must not be followed by
  an alphanumeric character
- emphasis with an empty interior, or without a closing marker, is literal
"""

import re

from org_mcp.org.models import (
    Code,
    Emphasis,
    EmphasisKind,
    Entity,
    FootnoteRef,
    Link,
    LinkKind,
    RichText,
    Target,
    Text,
    Verbatim,
)

EMPHASIS_MARKERS = {
    "*": EmphasisKind.BOLD,
    "/": EmphasisKind.ITALIC,
    "_": EmphasisKind.UNDERLINE,
    "+": EmphasisKind.STRIKE,
}

CODE_MARKERS = {"~": Code, "=": Verbatim}

AUTOLINK_SCHEMES = ("https://", "http://", "mailto:", "file:", "id:")

# Plain text runs up to the next character that could start markup,
# or up to a word-initial autolink scheme
TEXT_PATTERN = re.compile(r"(?:(?!\b(?:https?://|mailto:|file:|id:))[^\[<*/_+~=\\])+")

FOOTNOTE_PATTERN = re.compile(r"\[fn:([\w-]+)\]")
ENTITY_PATTERN = re.compile(r"\\([A-Za-z]+)(?:\{\})?")
AUTOLINK_BODY = re.compile(r"[^\s)\]>]+")
SCHEME_PATTERN = re.compile(r"^([A-Za-z][\w+.-]*):(\S.*)$")

TRAILING_PUNCTUATION = ".,;:!?'\""


def parse_inline(text: str) -> RichText:
    """Parse org inline markup into coalesced RichText."""
    nodes, _ = _InlineParser(text).parse_sequence(0, None)
    return RichText(tuple(nodes))


def make_link(target: str, description: RichText | None = None) -> Link:
    """Classify a link target by its prefix."""
    target = target.strip()
    if target.startswith(("http://", "https://")):
        return Link(LinkKind.WEB, target, description)
    if target.startswith("id:"):
        return Link(LinkKind.ID, target[3:], description)
    if target.startswith("file:"):
        path, _, search = target[5:].partition("::")
        return Link(LinkKind.PATH, path, description, scheme="file", search=search or None)
    match = SCHEME_PATTERN.match(target)
    if match:
        return Link(LinkKind.OTHER, match.group(2), description, scheme=match.group(1))
    return Link(LinkKind.PATH, target, description)


class _InlineParser:
    """
    Parse state for one text.

    Emphasis spans are scanned recursively, so each (position, marker) result
    is cached and an opener is only scanned when a closable marker of the
    same kind exists further right.
    """

    def __init__(self, text: str):
        self.text = text
        self._emphasis_cache: dict[tuple[int, str], tuple | None] = {}
        self._last_close: dict[str, int] = {}
        for pos, char in enumerate(text):
            if char in EMPHASIS_MARKERS and _can_close(text, pos):
                self._last_close[char] = pos
        self._alternatives = (
            _bracket_link,
            _target,
            _footnote,
            _code,
            self._emphasis,
            _autolink,
            _entity,
            _plain_text,
        )

    def parse_sequence(self, pos: int, stop: str | None):
        """
        Parse nodes from pos until the end of text or a valid closing `stop` marker.

        Returns:
            Tuple of (nodes, position). When `stop` is given but never found,
            nodes is None.
        """
        text = self.text
        nodes: list = []
        while pos < len(text):
            if stop is not None and text[pos] == stop and _can_close(text, pos):
                return nodes, pos
            result = self._parse_atom(pos)
            if result is None:
                # Nothing matched and the text run cannot advance: force one char
                nodes.append(Text(text[pos]))
                pos += 1
                continue
            node, pos = result
            nodes.append(node)
        if stop is not None:
            return None, pos
        return nodes, pos

    def _parse_atom(self, pos: int):
        for alternative in self._alternatives:
            result = alternative(self.text, pos)
            if result is not None:
                return result
        return None

    def _emphasis(self, text: str, pos: int):
        marker = text[pos]
        kind = EMPHASIS_MARKERS.get(marker)
        if kind is None or not _can_open(text, pos):
            return None
        if self._last_close.get(marker, -1) <= pos + 1:
            return None
        key = (pos, marker)
        if key not in self._emphasis_cache:
            children, close = self.parse_sequence(pos + 1, marker)
            if children:
                self._emphasis_cache[key] = (Emphasis(kind, RichText(tuple(children)).nodes), close + 1)
            else:
                self._emphasis_cache[key] = None
        return self._emphasis_cache[key]


def _can_open(text: str, pos: int) -> bool:
    if pos + 1 >= len(text) or text[pos + 1].isspace():
        return False
    return pos == 0 or not text[pos - 1].isalnum()


def _can_close(text: str, pos: int) -> bool:
    if pos == 0 or text[pos - 1].isspace():
        return False
    return pos + 1 >= len(text) or not text[pos + 1].isalnum()


def _bracket_link(text: str, pos: int):
    if not text.startswith("[[", pos):
        return None
    close = text.find("]", pos + 2)
    if close == -1:
        return None
    target = text[pos + 2 : close]
    if not target.strip() or "\n" in target or "[" in target:
        return None
    if text.startswith("]]", close):
        return make_link(target), close + 2
    if text.startswith("][", close):
        desc_end = text.find("]]", close + 2)
        if desc_end == -1:
            return None
        description = parse_inline(text[close + 2 : desc_end])
        return make_link(target, description or None), desc_end + 2
    return None


def _target(text: str, pos: int):
    if not text.startswith("<<", pos):
        return None
    close = text.find(">>", pos + 2)
    if close == -1:
        return None
    name = text[pos + 2 : close]
    if not name.strip() or any(c in name for c in "<>\n"):
        return None
    return Target(name), close + 2


def _footnote(text: str, pos: int):
    match = FOOTNOTE_PATTERN.match(text, pos)
    if not match:
        return None
    return FootnoteRef(match.group(1)), match.end()


def _code(text: str, pos: int):
    marker = text[pos]
    node_type = CODE_MARKERS.get(marker)
    if node_type is None or not _can_open(text, pos):
        return None
    close = text.find(marker, pos + 2)
    while close != -1 and not _can_close(text, close):
        close = text.find(marker, close + 1)
    if close == -1:
        return None
    return node_type(text[pos + 1 : close]), close + 1


def _autolink(text: str, pos: int):
    if pos > 0 and text[pos - 1].isalnum():
        return None
    for scheme in AUTOLINK_SCHEMES:
        if text.startswith(scheme, pos):
            break
    else:
        return None
    match = AUTOLINK_BODY.match(text, pos + len(scheme))
    if not match:
        return None
    body = match.group(0).rstrip(TRAILING_PUNCTUATION)
    if not body:
        return None
    end = pos + len(scheme) + len(body)
    return make_link(text[pos:end]), end


def _entity(text: str, pos: int):
    match = ENTITY_PATTERN.match(text, pos)
    if not match:
        return None
    return Entity(match.group(1)), match.end()


def _plain_text(text: str, pos: int):
    match = TEXT_PATTERN.match(text, pos)
    if not match:
        return None
    return Text(match.group(0)), match.end()
