"""Tests unitaires pour les options de la commande simulate."""

import pytest
import typer

from model_gateway.cli.commands.simulate import parse_attributes


def test_parse_attributes():
    assert parse_attributes(["plan=enterprise", " lang = fr ", "note=a=b"]) == {
        "plan": "enterprise",
        "lang": "fr",
        "note": "a=b",
    }


@pytest.mark.parametrize("pair", ["plan", "=enterprise"])
def test_parse_attributes_rejects_malformed_pairs(pair):
    with pytest.raises(typer.BadParameter):
        parse_attributes([pair])
