"""Tests for the markdown <-> ADF converter."""

import pytest

from jira_cli.adf import adf_to_markdown, markdown_to_adf, parse_inline
from jira_cli.errors import ConversionError


def text(value, *marks):
    node = {"type": "text", "text": value}
    if marks:
        node["marks"] = list(marks)
    return node


def para(*content):
    return {"type": "paragraph", "content": list(content)}


def doc(*content):
    return {"type": "doc", "version": 1, "content": list(content)}


# markdown -> ADF


def test_empty_text_gives_empty_document():
    assert markdown_to_adf("") == doc()


def test_heading_and_paragraph():
    assert markdown_to_adf("# Title\n\nBody text") == doc(
        {"type": "heading", "attrs": {"level": 1}, "content": [text("Title")]},
        para(text("Body text")),
    )


@pytest.mark.parametrize(
    "source,expected",
    [
        ("# Migrate to C#", "Migrate to C#"),
        ("## Title ##", "Title"),
        ("### Title   #", "Title"),
    ],
)
def test_heading_closing_hashes(source, expected):
    (node,) = markdown_to_adf(source)["content"]
    assert node["content"] == [text(expected)]


def test_consecutive_lines_become_hard_breaks():
    assert markdown_to_adf("line one\nline two") == doc(
        para(text("line one"), {"type": "hardBreak"}, text("line two"))
    )


def test_inline_marks():
    assert parse_inline("Hello **world**, *em*, ~~gone~~ and `code`") == [
        text("Hello "),
        text("world", {"type": "strong"}),
        text(", "),
        text("em", {"type": "em"}),
        text(", "),
        text("gone", {"type": "strike"}),
        text(" and "),
        text("code", {"type": "code"}),
    ]


def test_link():
    link = {"type": "link", "attrs": {"href": "https://example.com"}}
    assert parse_inline("[docs](https://example.com)") == [text("docs", link)]


def test_code_is_not_combined_with_other_marks():
    assert parse_inline("**`x`**") == [text("x", {"type": "code"})]


def test_snake_case_is_not_emphasis():
    assert parse_inline("use my_var_name here") == [text("use my_var_name here")]


def test_double_underscores_inside_words_are_kept():
    assert parse_inline("rename my__var__name") == [text("rename my__var__name")]


def test_underscore_strong():
    assert parse_inline("a __big__ deal") == [
        text("a "),
        text("big", {"type": "strong"}),
        text(" deal"),
    ]


def test_underscore_emphasis():
    assert parse_inline("an _important_ word") == [
        text("an "),
        text("important", {"type": "em"}),
        text(" word"),
    ]


def test_nested_bullet_list():
    result = markdown_to_adf("- one\n- two\n  - nested")
    item = lambda value, *extra: {  # noqa: E731
        "type": "listItem",
        "content": [para(text(value))] + list(extra),
    }
    assert result == doc(
        {
            "type": "bulletList",
            "content": [
                item("one"),
                item("two", {"type": "bulletList", "content": [item("nested")]}),
            ],
        }
    )


def test_ordered_list_keeps_start_number():
    (node,) = markdown_to_adf("3. a\n4. b")["content"]
    assert node["type"] == "orderedList"
    assert node["attrs"] == {"order": 3}
    assert len(node["content"]) == 2


def test_ordered_list_from_one_has_no_attrs():
    (node,) = markdown_to_adf("1. a\n2. b")["content"]
    assert "attrs" not in node


def test_code_fence():
    assert markdown_to_adf("```python\nprint(1)\n```") == doc(
        {
            "type": "codeBlock",
            "attrs": {"language": "python"},
            "content": [text("print(1)")],
        }
    )


def test_code_fence_keeps_markdown_literal():
    (node,) = markdown_to_adf("```\n**not bold**\n```")["content"]
    assert node == {"type": "codeBlock", "content": [text("**not bold**")]}


def test_rule_and_quote():
    assert markdown_to_adf("---\n\n> quoted") == doc(
        {"type": "rule"},
        {"type": "blockquote", "content": [para(text("quoted"))]},
    )


def test_table_with_header():
    (table,) = markdown_to_adf("| a | b |\n| --- | --- |\n| 1 | 2 |")["content"]
    header, row = table["content"]
    assert [cell["type"] for cell in header["content"]] == ["tableHeader"] * 2
    assert [cell["type"] for cell in row["content"]] == ["tableCell"] * 2
    assert row["content"][1]["content"] == [para(text("2"))]


def test_non_text_input_is_rejected():
    with pytest.raises(ConversionError):
        markdown_to_adf(None)


# ADF -> markdown


def test_none_and_plain_strings():
    assert adf_to_markdown(None) == ""
    assert adf_to_markdown("already plain") == "already plain"


def test_blocks_are_separated_by_blank_lines():
    document = doc(
        {"type": "heading", "attrs": {"level": 2}, "content": [text("Title")]},
        para(text("Body")),
    )
    assert adf_to_markdown(document) == "## Title\n\nBody"


def test_inline_nodes():
    document = doc(
        para(
            text("Hi "),
            {"type": "mention", "attrs": {"id": "acc-1", "text": "@Alice"}},
            text(" "),
            {"type": "emoji", "attrs": {"shortName": ":smile:"}},
            text(" "),
            {"type": "status", "attrs": {"text": "IN PROGRESS"}},
            text(" "),
            {"type": "date", "attrs": {"timestamp": "1700000000000"}},
        )
    )
    assert adf_to_markdown(document) == "Hi @Alice :smile: [IN PROGRESS] 2023-11-14"


def test_marks_render_as_markdown():
    link = {"type": "link", "attrs": {"href": "https://example.com"}}
    document = doc(para(text("bold", {"type": "strong"}), text(" "), text("site", link)))
    assert adf_to_markdown(document) == "**bold** [site](https://example.com)"


def test_nested_lists():
    def item(value, *extra):
        return {"type": "listItem", "content": [para(text(value))] + list(extra)}

    document = doc(
        {
            "type": "bulletList",
            "content": [
                item("one"),
                item("two", {"type": "bulletList", "content": [item("nested")]}),
            ],
        },
        {"type": "orderedList", "attrs": {"order": 3}, "content": [item("a"), item("b")]},
    )
    assert adf_to_markdown(document) == "- one\n- two\n  - nested\n\n3. a\n4. b"


def test_task_list():
    document = doc(
        {
            "type": "taskList",
            "content": [
                {"type": "taskItem", "attrs": {"state": "DONE"}, "content": [text("ship")]},
                {"type": "taskItem", "attrs": {"state": "TODO"}, "content": [text("test")]},
            ],
        }
    )
    assert adf_to_markdown(document) == "- [x] ship\n- [ ] test"


def test_code_block_and_quote():
    document = doc(
        {"type": "codeBlock", "attrs": {"language": "python"}, "content": [text("print(1)")]},
        {"type": "blockquote", "content": [para(text("quoted"))]},
    )
    assert adf_to_markdown(document) == "```python\nprint(1)\n```\n\n> quoted"


def test_table():
    def cell(kind, value):
        return {"type": kind, "content": [para(text(value))]}

    document = doc(
        {
            "type": "table",
            "content": [
                {"type": "tableRow", "content": [cell("tableHeader", "a"), cell("tableHeader", "b")]},
                {"type": "tableRow", "content": [cell("tableCell", "1"), cell("tableCell", "2")]},
            ],
        }
    )
    assert adf_to_markdown(document) == "| a | b |\n| --- | --- |\n| 1 | 2 |"


def test_unknown_nodes_keep_their_content():
    document = doc({"type": "someFutureNode", "content": [para(text("inside"))]})
    assert adf_to_markdown(document) == "inside"


@pytest.mark.parametrize(
    "document",
    [
        42,
        {"type": "doc", "content": "oops"},
        {"type": "doc", "content": [{"content": []}]},
        {"type": "doc", "content": ["not a node"]},
    ],
)
def test_malformed_documents(document):
    with pytest.raises(ConversionError):
        adf_to_markdown(document)


def test_ordered_list_starting_at_zero():
    document = markdown_to_adf("0. a\n1. b")
    assert document["content"][0]["attrs"] == {"order": 0}
    assert adf_to_markdown(document) == "0. a\n1. b"


def test_round_trip_of_common_markdown():
    source = "# Title\n\nSome **bold** and `code`.\n\n- one\n- two"
    assert adf_to_markdown(markdown_to_adf(source)) == source
