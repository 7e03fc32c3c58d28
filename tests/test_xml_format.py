"""Tests for parsing deck documents."""
from __future__ import annotations

from pathlib import Path

import pytest

from karten.artifact import Backside
from karten.errors import (
    InvalidAttributeValueError,
    MarkupError,
    MarkupParseError,
    MissingDeckNameError,
    UnexpectedTagError,
)
from karten.markup import Blank, Bottom, Card, Deck, Font, Italic, Plain, Theme, Tiny, Unknown
from karten.xml_format import load_deck, parse_deck

SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<deck name="My Name" theme="dark">
    <card>
        The first card contains a <blank/>.
    </card>
    <card><i><blank/></i></card>
    <card>
        This is <i>very</i> good.
    </card>
</deck>
"""


class TestParseDeck:
    """Test successful parsing."""

    def test_sample_deck(self):
        deck = parse_deck(SAMPLE)

        assert deck == Deck(
            name="My Name",
            theme=Theme.DARK,
            back=Backside.SHARED,
            cards=[
                Card([Plain("The first card contains a "), Blank(), Plain(".")]),
                Card([Italic([Blank()])]),
                Card([Plain("This is "), Italic([Plain("very")]), Plain(" good.")]),
            ],
        )

    def test_display(self):
        deck = parse_deck(SAMPLE)

        assert str(deck.cards[0]) == "The first card contains a ____."
        assert str(deck.cards[1]) == "*____*"
        assert str(deck.cards[2]) == "This is *very* good."

    def test_bytes_input(self):
        deck = parse_deck(SAMPLE.encode("utf-8"))

        assert deck.name == "My Name"
        assert len(deck.cards) == 3

    def test_trimming(self):
        deck = parse_deck('<deck name="hi"><card>\n        Hallo!!!!!<blank/> </card></deck>')

        assert str(deck.cards[0]) == "Hallo!!!!!____"

    def test_bottom(self):
        deck = parse_deck(
            '<deck name="hi"><card>\n        ÖÖÖÖÖÖÖÄ???ASD<blank/><bottom>ASDF</bottom>\n        </card></deck>'
        )

        assert str(deck.cards[0]) == "ÖÖÖÖÖÖÖÄ???ASD____\n\nASDF"
        assert deck.cards[0].annotated_bottom() == ("ASDF", [])

    def test_defaults(self):
        deck = parse_deck('<deck name="plain"></deck>')

        assert deck.theme == Theme.LIGHT
        assert deck.back == Backside.SHARED
        assert deck.cards == []

    @pytest.mark.parametrize("value", ["light", "Light", "LIGHT"])
    def test_light_theme_spellings(self, value: str):
        assert parse_deck(f'<deck name="x" theme="{value}"/>').theme == Theme.LIGHT

    @pytest.mark.parametrize("value", ["dark", "Dark", "DARK"])
    def test_dark_theme_spellings(self, value: str):
        assert parse_deck(f'<deck name="x" theme="{value}"/>').theme == Theme.DARK

    def test_unique_back(self):
        assert parse_deck('<deck name="x" back="unique"/>').back == Backside.UNIQUE

    def test_only_card_children_become_cards(self):
        deck = parse_deck('<deck name="x">text<note>skip</note><card>a</card></deck>')

        assert deck.cards == [Card([Plain("a")])]

    def test_inline_tags(self):
        deck = parse_deck(
            '<deck name="x"><card>'
            'a<br/>b<italic>c</italic><tiny>d</tiny>'
            '<font family="Times" size="1.5">e</font><font>f</font>'
            '<b class="loud">g</b>'
            '</card></deck>'
        )

        assert deck.cards[0].content == [
            Plain("a"),
            Plain("\n"),
            Plain("b"),
            Italic([Plain("c")]),
            Tiny([Plain("d")]),
            Font([Plain("e")], family="Times", size=1.5),
            Font([Plain("f")]),
            Unknown(tag="b", attributes=[("class", "loud")], content=[Plain("g")]),
        ]

    def test_bad_font_size_falls_back_to_one(self):
        deck = parse_deck('<deck name="x"><card><font size="big">e</font></card></deck>')

        assert deck.cards[0].content == [Font([Plain("e")], size=1.0)]

    def test_bottom_with_styles(self):
        deck = parse_deck(
            '<deck name="x"><card>Glück<bottom><tiny>Auf der <i>Steiger</i> kommt</tiny></bottom></card></deck>'
        )
        card = deck.cards[0]

        assert card.footer == Bottom([Tiny([Plain("Auf der "), Italic([Plain("Steiger")]), Plain(" kommt")])])
        assert card.annotated_bottom()[0] == "Auf der Steiger kommt"

    def test_load_deck(self, tmp_path: Path):
        path = tmp_path / "sample.xml"
        path.write_text(SAMPLE, encoding="utf-8")

        assert load_deck(path).name == "My Name"


class TestParseErrors:
    """Test error reporting for malformed decks."""

    def test_missing_name(self):
        with pytest.raises(MissingDeckNameError) as info:
            parse_deck("<deck><card>a</card></deck>")

        assert str(info.value) == 'the deck has no name attribute set like <deck name="example">...</deck>'

    def test_invalid_theme(self):
        with pytest.raises(InvalidAttributeValueError) as info:
            parse_deck('<deck name="x" theme="blue"/>')

        error = info.value
        assert (error.tag, error.attribute, error.value) == ("deck", "theme", "blue")
        assert error.allowed == ("light", "dark")
        assert str(error) == (
            "invalid value for attribute: <deck ... theme=\"blue\" ... />, "
            "allowed values are ['light', 'dark']"
        )

    def test_invalid_back(self):
        with pytest.raises(InvalidAttributeValueError) as info:
            parse_deck('<deck name="x" back="Shared"/>')

        assert info.value.allowed == ("shared", "unique")

    def test_wrong_root(self):
        with pytest.raises(UnexpectedTagError) as info:
            parse_deck('<cards name="x"/>')

        assert (info.value.expected, info.value.actual) == ("deck", "cards")

    def test_mismatched_closing_tag(self):
        with pytest.raises(UnexpectedTagError) as info:
            parse_deck('<deck name="x"><card>Hello <i>World</card></deck>')

        assert info.value.expected == "i"
        assert info.value.actual == "card"
        assert str(info.value) == "expected i, but got card"

    def test_unclosed_document(self):
        with pytest.raises(MarkupParseError) as info:
            parse_deck('<deck name="x"><card>')

        assert str(info.value).startswith("couldn't parse the xml file")

    def test_not_xml(self):
        with pytest.raises(MarkupError):
            parse_deck("just some text")

    def test_empty_document(self):
        with pytest.raises(MarkupParseError):
            parse_deck("")
