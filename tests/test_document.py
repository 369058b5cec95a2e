import time
from datetime import datetime, timezone

import pytest

from thread_blocks.services.blocks import AttributionBlock, DividerBlock, MessageHeaderBlock
from thread_blocks.services.document import TextBlock, first_attribution, parse_document, render_html

THREAD = (
    "Sounds good.\n"
    "\n"
    "On Tue, 3 Jan 2006 10:00:00 -0700, Alice <alice@example.com> wrote:\n"
    "> Shall we meet?\n"
    "\n"
    "-----Original Message-----\n"
    "From: Bob\n"
    "Sent: Monday\n"
    "Subject: Plans\n"
    "\n"
    "Earlier text\n"
)


def test_parse_document_finds_blocks_in_order() -> None:
    segments = parse_document(THREAD)

    assert [type(segment.block) for segment in segments] == [
        TextBlock,
        AttributionBlock,
        TextBlock,
        MessageHeaderBlock,
        TextBlock,
    ]
    attribution = segments[1].block
    assert attribution.name == "Alice"
    assert attribution.time == datetime(2006, 1, 3, 17, 0, tzinfo=timezone.utc)
    header = segments[3].block
    assert [(f.name, f.value) for f in header.fields] == [("From", "Bob"), ("Sent", "Monday"), ("Subject", "Plans")]
    assert segments[4].block.text == "Earlier text\n"


def test_parse_document_reconstructs_input() -> None:
    text = THREAD + "\n____\n--- bob wrote:\nold\n"
    segments = parse_document(text)

    assert "".join(segment.raw for segment in segments) == text
    assert any(isinstance(segment.block, DividerBlock) for segment in segments)


def test_parse_document_plain_text() -> None:
    segments = parse_document("Just a note.\nNo quotes here.")

    assert len(segments) == 1
    assert segments[0].block == TextBlock("Just a note.\nNo quotes here.")
    assert parse_document("") == []


def test_first_attribution() -> None:
    assert first_attribution(parse_document(THREAD)).name == "Alice"
    assert first_attribution(parse_document("plain")) is None


def test_text_block_html_escapes_and_breaks_lines() -> None:
    assert TextBlock("a < b\nc\n\nd").to_html() == "<p>a &lt; b<br>c</p>\n<p>d</p>"
    assert TextBlock("\n\n").to_html() == ""


def test_nested_quotes_render_as_blockquotes() -> None:
    markup = TextBlock("> On Tue, 3 Jan 2006, Bob wrote:\n> > inner").to_html()

    assert markup.startswith("<blockquote>")
    assert '<span class="attribution-name">Bob</span>' in markup
    assert "<blockquote><p>inner</p></blockquote></blockquote>" in markup


def test_render_html_joins_blocks() -> None:
    markup = render_html(parse_document(THREAD))

    assert markup.startswith("<p>Sounds good.</p>")
    assert '<p class="attribution">' in markup
    assert "<blockquote><p>Shall we meet?</p></blockquote>" in markup
    assert '<dl class="message-header"><dt>From</dt><dd>Bob</dd>' in markup
    assert markup.endswith("<p>Earlier text</p>")


PROSE = ("word " * 8 + "\n") * 5000


@pytest.mark.parametrize(
    "text, name",
    [
        (PROSE, None),
        (PROSE + "--- alice wrote:\n", "alice"),
        (PROSE + "alice <alice@example.com> wrote: hi\n", "alice"),
        ("word " * 40000 + "wrote:\n", None),
    ],
)
def test_long_bodies_parse_in_linear_time(text: str, name) -> None:
    started = time.perf_counter()
    segments = parse_document(text)
    elapsed = time.perf_counter() - started

    assert elapsed < 2.0
    assert "".join(segment.raw for segment in segments) == text
    attribution = first_attribution(segments)
    assert (attribution.name if attribution else None) == name
