"""Tests for artifact naming and ordering."""
from __future__ import annotations

from karten.artifact import (
    Artifact,
    Backside,
    MultipleAmount,
    SheetContent,
    Side,
    SingleAmount,
    SingleContent,
    order_artifacts,
)


def make(side: Side, amount, content=None, data=None) -> Artifact:
    return Artifact(
        deck="Fragen",
        side=side,
        shared=Backside.UNIQUE,
        content=content or SheetContent(rows=7, columns=10, occupied=70),
        amount=amount,
        data=data,
    )


class TestNaming:
    def test_sheet_name(self):
        artifact = make(Side.FRONT, MultipleAmount(index=1, total=3))

        assert str(artifact) == "Fragen-front-r7c10t70-1of3"
        assert artifact.name == str(artifact)

    def test_single_name(self):
        artifact = make(Side.BACK, SingleAmount(), content=SingleContent())

        assert str(artifact) == "Fragen-back-single-1of1"

    def test_names_are_unique_per_deck(self):
        names = {
            str(make(side, MultipleAmount(index, 3)))
            for side in (Side.FRONT, Side.BACK)
            for index in (1, 2, 3)
        }

        assert len(names) == 6

    def test_with_data_keeps_identity(self):
        artifact = make(Side.FRONT, SingleAmount(), data=b"pixels")
        encoded = artifact.with_data(b"png", aspect_ratio=1.5, extension="png")

        assert encoded.name == artifact.name
        assert encoded.data == b"png"
        assert encoded.is_landscape
        assert artifact.data == b"pixels"
        assert not artifact.is_landscape


class TestOrdering:
    def test_fronts_and_backs_interleave_by_page(self):
        artifacts = [
            make(Side.FRONT, MultipleAmount(1, 2)),
            make(Side.FRONT, MultipleAmount(2, 2)),
            make(Side.BACK, MultipleAmount(1, 2)),
            make(Side.BACK, MultipleAmount(2, 2)),
        ]

        ordered = [str(artifact) for artifact in order_artifacts(artifacts)]

        assert ordered == [
            "Fragen-front-r7c10t70-1of2",
            "Fragen-back-r7c10t70-1of2",
            "Fragen-front-r7c10t70-2of2",
            "Fragen-back-r7c10t70-2of2",
        ]

    def test_single_amount_comes_first(self):
        artifacts = [
            make(Side.FRONT, MultipleAmount(2, 2)),
            make(Side.FRONT, MultipleAmount(1, 2)),
            make(Side.BACK, SingleAmount(), content=SingleContent()),
        ]

        ordered = order_artifacts(artifacts)

        assert [artifact.amount for artifact in ordered] == [
            SingleAmount(),
            MultipleAmount(1, 2),
            MultipleAmount(2, 2),
        ]

    def test_ordering_is_stable(self):
        front = make(Side.FRONT, SingleAmount())
        back = make(Side.BACK, SingleAmount())

        assert order_artifacts([front, back]) == [front, back]
