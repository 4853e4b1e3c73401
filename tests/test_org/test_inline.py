"""Tests for the inline markup parser."""

import time

import pytest

from org_mcp.org.inline import make_link, parse_inline
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


class TestParseInline:
    def test_title_with_link_and_bold(self):
        rich = parse_inline("Reach out to [[https://example.com][Example]] about *bold* plan")
        assert rich.nodes == (
            Text("Reach out to "),
            Link(LinkKind.WEB, "https://example.com", RichText((Text("Example"),))),
            Text(" about "),
            Emphasis(EmphasisKind.BOLD, (Text("bold"),)),
            Text(" plan"),
        )

    def test_plain_text_is_one_node(self):
        assert parse_inline("just words here").nodes == (Text("just words here"),)

    def test_empty_text(self):
        rich = parse_inline("")
        assert rich.nodes == ()
        assert not rich

    @pytest.mark.parametrize(
        "marker,kind",
        [
            ("*", EmphasisKind.BOLD),
            ("/", EmphasisKind.ITALIC),
            ("_", EmphasisKind.UNDERLINE),
            ("+", EmphasisKind.STRIKE),
        ],
    )
    def test_emphasis_kinds(self, marker, kind):
        rich = parse_inline(f"a {marker}word{marker} b")
        assert rich.nodes[1] == Emphasis(kind, (Text("word"),))

    def test_nested_emphasis(self):
        rich = parse_inline("*bold /it/*")
        assert rich.nodes == (
            Emphasis(
                EmphasisKind.BOLD,
                (Text("bold "), Emphasis(EmphasisKind.ITALIC, (Text("it"),))),
            ),
        )

    def test_code_and_verbatim_do_not_nest(self):
        rich = parse_inline("use ~x *y*~ and =v=")
        assert rich.nodes == (Text("use "), Code("x *y*"), Text(" and "), Verbatim("v"))

    def test_target_footnote_entity(self):
        rich = parse_inline("<<anchor>> see[fn:1] \\alpha")
        assert rich.nodes == (
            Target("anchor"),
            Text(" see"),
            FootnoteRef("1"),
            Text(" "),
            Entity("alpha"),
        )

    def test_link_without_description(self):
        rich = parse_inline("[[Some Heading]]")
        assert rich.nodes == (Link(LinkKind.PATH, "Some Heading"),)

    def test_description_parses_markup(self):
        link = parse_inline("[[https://x.org][*Bold* desc]]").nodes[0]
        assert link.description.nodes == (
            Emphasis(EmphasisKind.BOLD, (Text("Bold"),)),
            Text(" desc"),
        )

    def test_autolink_strips_trailing_punctuation(self):
        rich = parse_inline("see https://example.com/a.")
        assert rich.nodes == (
            Text("see "),
            Link(LinkKind.WEB, "https://example.com/a"),
            Text("."),
        )

    def test_scheme_inside_word_is_not_autolink(self):
        assert parse_inline("paid:yes").nodes == (Text("paid:yes"),)

    def test_plain_text_property(self):
        rich = parse_inline("Call [[https://x.org][Bob]] about ~api~")
        assert rich.plain_text == "Call Bob about api"


class TestEmphasisBoundaries:
    def test_marker_followed_by_whitespace_is_literal(self):
        assert parse_inline("* bold*").nodes == (Text("* bold*"),)

    def test_unclosed_marker_is_literal(self):
        assert parse_inline("*unclosed").nodes == (Text("*unclosed"),)

    def test_marker_inside_word_is_literal(self):
        assert parse_inline("a*b*c").nodes == (Text("a*b*c"),)

    def test_close_before_whitespace_required(self):
        assert parse_inline("*a *").nodes == (Text("*a *"),)

    def test_empty_emphasis_is_literal(self):
        assert parse_inline("**").nodes == (Text("**"),)

    def test_math_like_text(self):
        assert parse_inline("2 * 3 = 6").plain_text == "2 * 3 = 6"


class TestUnclosedMarkerRuns:
    """Long runs of openers without closers must parse in bounded time."""

    def test_many_unclosed_markers(self):
        text = "*a /b " * 200
        started = time.perf_counter()
        rich = parse_inline(text)
        assert time.perf_counter() - started < 1.0
        assert rich.nodes == (Text(text),)

    def test_paths_in_prose(self):
        text = "Check /usr/bin /etc /var /opt /srv /home /tmp /root /mnt /lib /sbin /boot /dev /proc " * 10
        started = time.perf_counter()
        assert parse_inline(text).nodes == (Text(text),)
        assert time.perf_counter() - started < 1.0

    def test_closed_emphasis_after_many_openers(self):
        prefix = "*a " * 60
        started = time.perf_counter()
        rich = parse_inline(prefix + "*b*")
        assert time.perf_counter() - started < 1.0
        assert rich.nodes == (Text(prefix), Emphasis(EmphasisKind.BOLD, (Text("b"),)))


class TestMakeLink:
    def test_web(self):
        assert make_link("https://example.com").kind == LinkKind.WEB

    def test_id(self):
        link = make_link("id:abc-123")
        assert link.kind == LinkKind.ID
        assert link.target == "abc-123"
        assert link.raw_target == "id:abc-123"

    def test_file_with_search(self):
        link = make_link("file:notes.org::*Heading")
        assert link.kind == LinkKind.PATH
        assert link.target == "notes.org"
        assert link.scheme == "file"
        assert link.search == "*Heading"
        assert link.raw_target == "file:notes.org::*Heading"

    def test_other_scheme(self):
        link = make_link("mailto:me@example.org")
        assert link.kind == LinkKind.OTHER
        assert link.scheme == "mailto"
        assert link.target == "me@example.org"

    def test_bare_path(self):
        link = make_link("./notes.org")
        assert link.kind == LinkKind.PATH
        assert link.scheme is None

    def test_colon_followed_by_space_is_path(self):
        assert make_link("Heading: sub").kind == LinkKind.PATH
