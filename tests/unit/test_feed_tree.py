# tests/unit/test_feed_tree.py
from __future__ import annotations

import pytest

from src.core.errors import ParseError
from src.core.normalize.feed_tree import TEXT_KEY, parse_feed


def test_every_element_is_a_list_even_when_single() -> None:
    tree = parse_feed(b"<Export><RealtyObject><Id>7</Id></RealtyObject></Export>")
    assert tree == {"Export": [{"RealtyObject": [{"Id": ["7"]}]}]}


def test_attributes_share_key_space_and_text_goes_under_underscore() -> None:
    tree = parse_feed(b'<Export><RealtyObject Id="7"><Price currency="EUR"> 120000 </Price></RealtyObject></Export>')
    obj = tree["Export"][0]["RealtyObject"][0]
    assert obj["Id"] == ["7"]
    assert obj["Price"] == [{"currency": ["EUR"], TEXT_KEY: ["120000"]}]


def test_child_element_wins_over_same_named_attribute() -> None:
    tree = parse_feed(b'<Obj Price="1"><Price>2</Price></Obj>')
    assert tree["Obj"][0]["Price"] == ["2"]


def test_repeated_children_keep_document_order() -> None:
    tree = parse_feed(b"<L><Item>a</Item><Item>b</Item><Item>c</Item></L>")
    assert tree["L"][0]["Item"] == ["a", "b", "c"]


def test_tag_case_is_preserved() -> None:
    tree = parse_feed(b"<Root><TITLE>x</TITLE><title>y</title></Root>")
    root = tree["Root"][0]
    assert root["TITLE"] == ["x"]
    assert root["title"] == ["y"]


def test_namespaces_reduce_to_local_names() -> None:
    tree = parse_feed(b'<a:Export xmlns:a="urn:feed"><a:Item>1</a:Item></a:Export>')
    assert tree == {"Export": [{"Item": ["1"]}]}


def test_empty_leaf_is_empty_string_and_whitespace_is_normalized() -> None:
    tree = parse_feed(b"<R><Empty/><Text>  two\n   words </Text></R>")
    assert tree["R"][0]["Empty"] == [""]
    assert tree["R"][0]["Text"] == ["two words"]


def test_str_input_with_encoding_declaration_is_accepted() -> None:
    tree = parse_feed('<?xml version="1.0" encoding="UTF-8"?>\n<R><T>Квартира</T></R>')
    assert tree["R"][0]["T"] == ["Квартира"]


def test_comments_are_dropped() -> None:
    tree = parse_feed(b"<R><!-- note --><T>x</T></R>")
    assert tree == {"R": [{"T": ["x"]}]}


@pytest.mark.parametrize("raw", [b"", "   ", b"<Export><Open></Export>", b"not xml at all"])
def test_malformed_or_empty_feed_raises_parse_error(raw) -> None:
    with pytest.raises(ParseError):
        parse_feed(raw)
