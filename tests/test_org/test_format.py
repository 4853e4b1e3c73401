"""Tests for canonical org rendering."""

from datetime import date

import pytest

from org_mcp.org.format import format_document, format_heading, format_headline, format_inline
from org_mcp.org.inline import parse_inline
from org_mcp.org.models import (
    ClockEntry,
    Document,
    Heading,
    Paragraph,
    RichText,
    Timestamp,
    TodoKeyword,
)
from org_mcp.org.parser import parse_document

SAMPLE = """\
#+TITLE: Weekly notes
#+FILETAGS: :work:notes:

Intro paragraph with *markup* and [[https://example.com][a link]].

* Project Alpha :project:
** TODO [#A] Write report :writing:urgent:
DEADLINE: <2025-01-10 Fri> SCHEDULED: <2025-01-06 Mon 09:00>
:PROPERTIES:
:EFFORT: 2:00
:END:
:LOGBOOK:
CLOCK: [2025-01-06 Mon 09:00]--[2025-01-06 Mon 10:30] =>  1:30
:END:
- [ ] outline
- [X] gather data

First paragraph.

Second paragraph with ~code~ and \\alpha.
:NOTES:
free text
:END:
** DONE Kickoff
CLOSED: [2025-01-02 Thu 16:00]
* Broken
:PROPERTIES:
:ID: 1
-----
1. [@2] counted
"""


class TestFormatDocument:
    def test_round_trip_is_stable(self):
        once = format_document(parse_document(SAMPLE))
        twice = format_document(parse_document(once))
        assert once == twice

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "* A\n** B\n*** C\n",
            "* TODO\n",
            "* :solo:\n",
            "plain preamble\n\nsecond paragraph\n",
            "* H\n- a\n- b\n\n- c\n",
            "* H\nsee https://example.com/x. now\n",
            "* H\n<<anchor>> and [fn:1] and =verb=\n",
            "#+TODO: TASK | FIN\n* TASK thing\n* FIN other\n",
            "* H\n\\alpha{}beta and \\beta{} gamma\n",
        ],
    )
    def test_idempotent_inputs(self, text):
        once = format_document(parse_document(text))
        assert format_document(parse_document(once)) == once

    def test_entity_followed_by_letters_keeps_terminator(self):
        doc = parse_document("* H\n\\alpha{}beta and *\\beta{}x* \\gamma 1\n")
        rendered = format_document(doc)
        assert rendered == "* H\n\\alpha{}beta and *\\beta{}x* \\gamma 1\n"
        assert parse_document(rendered).headings[0].body == doc.headings[0].body

    def test_canonical_planning_and_tags(self):
        text = "* TODO Call [[https://x.org][Bob]] :b:a:\nDEADLINE: <2025-01-10> SCHEDULED: <2025-01-08 09:00>\n"
        assert format_document(parse_document(text)) == (
            "* TODO Call [[https://x.org][Bob]] :a:b:\n"
            "SCHEDULED: <2025-01-08 Wed 09:00> DEADLINE: <2025-01-10 Fri>\n"
        )

    def test_title_directives_are_joined(self):
        assert format_document(parse_document("#+title: A\n#+TITLE: B\n")) == "#+TITLE: A B\n"

    def test_empty_document(self):
        assert format_document(Document()) == ""

    def test_adjacent_paragraphs_are_separated(self):
        doc = Document(preamble=[Paragraph(RichText.plain("one")), Paragraph(RichText.plain("two"))])
        assert format_document(doc) == "one\n\ntwo\n"

    def test_clock_duration(self):
        text = "* H\n:LOGBOOK:\nCLOCK: [2025-01-06 Mon 09:00]--[2025-01-06 Mon 10:30] =>  1:30\n:END:\n"
        assert "CLOCK: [2025-01-06 Mon 09:00]--[2025-01-06 Mon 10:30] => 1:30" in format_document(
            parse_document(text)
        )

    def test_unterminated_drawer_kept_verbatim(self):
        out = format_document(parse_document("* A\n:PROPERTIES:\n:ID: 1\n* B\n"))
        assert out == "* A\n:PROPERTIES:\n:ID: 1\n* B\n"


class TestFormatHeading:
    def test_headline_parts(self):
        heading = Heading(
            level=2,
            title=RichText.plain("Write"),
            todo=TodoKeyword("NEXT"),
            priority="B",
            tags={"z", "a"},
        )
        assert format_headline(heading) == "** NEXT [#B] Write :a:z:"

    def test_subtree(self):
        parent = Heading(level=1, title=RichText.plain("Parent"))
        parent.children.append(Heading(level=2, title=RichText.plain("Child")))
        assert format_heading(parent) == "* Parent\n** Child\n"

    def test_open_clock(self):
        heading = Heading(level=1, title=RichText.plain("H"))
        heading.logbook.clocks.append(ClockEntry(start=Timestamp(active=False, date=date(2025, 1, 6))))
        assert format_heading(heading) == "* H\n:LOGBOOK:\nCLOCK: [2025-01-06 Mon]\n:END:\n"


class TestFormatInline:
    def test_markup(self):
        text = "Reach out to [[https://example.com][Example]] about *bold /it/* plan"
        assert format_inline(parse_inline(text)) == text

    def test_autolink_becomes_bracketed(self):
        assert format_inline(parse_inline("see https://example.com")) == "see [[https://example.com]]"

    def test_link_kinds(self):
        text = "[[id:abc]] [[file:notes.org::*Top]] [[mailto:me@example.org][mail]]"
        assert format_inline(parse_inline(text)) == text
