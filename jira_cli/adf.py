"""
jira-cli - markdown <-> Atlassian Document Format conversion

Descriptions and comments are stored by Jira as ADF documents. Users read and
write them as markdown, so this module converts in both directions:

    markdown_to_adf("**hi**")  -> {"type": "doc", "version": 1, "content": [...]}
    adf_to_markdown(document)  -> "**hi**"

Supported markdown: ATX headings, paragraphs, bullet and ordered lists
(nested by indentation), fenced code blocks, block quotes, horizontal rules,
pipe tables, and the inline marks strong, em, code, strike and links. Line
breaks inside a paragraph become hard breaks.

Malformed input raises ConversionError rather than dropping content.

Copyright (c) 2025
All rights reserved.

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this
   list of conditions and the following disclaimer.

2. Redistributions in binary form must reproduce the above copyright notice,
   this list of conditions and the following disclaimer in the documentation
   and/or other materials provided with the distribution.

3. Neither the name of the copyright holder nor the names of its
   contributors may be used to endorse or promote products derived from
   this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConversionError

Node = Dict[str, Any]

FENCE_RE = re.compile(r"^\s*(```|~~~)\s*([\w+#.-]*)\s*$")
HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")
RULE_RE = re.compile(r"^\s*([-*_])(\s*\1){2,}\s*$")
QUOTE_RE = re.compile(r"^\s*>\s?(.*)$")
LIST_RE = re.compile(r"^(\s*)([-*+]|\d{1,9}[.)])\s+(.*)$")
TABLE_RE = re.compile(r"^\s*\|.*\|\s*$")
TABLE_SEPARATOR_RE = re.compile(r"^\|(\s*:?-+:?\s*\|)+$")

INLINE_RE = re.compile(
    r"(?P<code>`+)(?P<code_text>.+?)(?P=code)"
    r"|\[(?P<link_text>[^\]]+)\]\((?P<href>[^)\s]+)\)"
    r"|\*\*(?P<strong>.+?)\*\*"
    r"|(?<!\w)__(?P<strong_u>.+?)__(?!\w)"
    r"|~~(?P<strike>.+?)~~"
    r"|\*(?P<em>[^*\s](?:[^*]*[^*\s])?)\*"
    r"|(?<!\w)_(?P<em_u>[^_\s](?:[^_]*[^_\s])?)_(?!\w)"
)


# ---------------------------------------------------------------------------
# markdown -> ADF
# ---------------------------------------------------------------------------


def _text(text: str, marks: Optional[List[Node]] = None) -> Node:
    node: Node = {"type": "text", "text": text}
    if marks:
        node["marks"] = marks
    return node


def _add_mark(nodes: List[Node], mark: Node) -> List[Node]:
    for node in nodes:
        marks = node.setdefault("marks", [])
        # ADF only allows code to be combined with links
        if mark["type"] != "link" and any(m["type"] == "code" for m in marks):
            continue
        marks.append(mark)
    return nodes


def parse_inline(text: str) -> List[Node]:
    """Parse inline markdown into ADF text nodes."""
    nodes: List[Node] = []
    last_end = 0

    for match in INLINE_RE.finditer(text):
        if match.start() > last_end:
            nodes.append(_text(text[last_end : match.start()]))

        if match.group("code"):
            code = match.group("code_text")
            # `` ` `` style padding is not part of the code
            if len(code) > 2 and code.startswith(" ") and code.endswith(" "):
                code = code[1:-1]
            nodes.append(_text(code, [{"type": "code"}]))
        elif match.group("link_text"):
            nodes.extend(
                _add_mark(
                    parse_inline(match.group("link_text")),
                    {"type": "link", "attrs": {"href": match.group("href")}},
                )
            )
        elif match.group("strong") or match.group("strong_u"):
            inner = match.group("strong") or match.group("strong_u")
            nodes.extend(_add_mark(parse_inline(inner), {"type": "strong"}))
        elif match.group("strike"):
            nodes.extend(
                _add_mark(parse_inline(match.group("strike")), {"type": "strike"})
            )
        else:
            inner = match.group("em") or match.group("em_u")
            nodes.extend(_add_mark(parse_inline(inner), {"type": "em"}))

        last_end = match.end()

    if last_end < len(text):
        nodes.append(_text(text[last_end:]))

    # ADF rejects empty text nodes
    return [node for node in nodes if node["text"]]


def _inline_lines(lines: List[str]) -> List[Node]:
    """Inline content for several source lines joined by hard breaks."""
    content: List[Node] = []
    for i, line in enumerate(lines):
        if i:
            content.append({"type": "hardBreak"})
        content.extend(parse_inline(line.strip()))
    return content


def _paragraph(lines: List[str]) -> Node:
    node: Node = {"type": "paragraph"}
    content = _inline_lines(lines)
    if content:
        node["content"] = content
    return node


def _is_block_start(line: str) -> bool:
    return bool(
        FENCE_RE.match(line)
        or HEADING_RE.match(line)
        or RULE_RE.match(line)
        or QUOTE_RE.match(line)
        or LIST_RE.match(line)
        or TABLE_RE.match(line)
    )


def _next_non_blank(lines: List[str], i: int) -> Optional[str]:
    while i < len(lines):
        if lines[i].strip():
            return lines[i]
        i += 1
    return None


def _indent_width(whitespace: str) -> int:
    return len(whitespace.expandtabs(4))


def _collect_list_entries(lines: List[str], i: int) -> Tuple[List[Dict], int]:
    """Gather list items (and their continuation lines) starting at line i."""
    entries: List[Dict] = []
    while i < len(lines):
        line = lines[i]
        match = LIST_RE.match(line)
        if match and not RULE_RE.match(line):
            marker = match.group(2)
            ordered = marker[0].isdigit()
            entries.append(
                {
                    "indent": _indent_width(match.group(1)),
                    "ordered": ordered,
                    "start": int(marker[:-1]) if ordered else None,
                    "lines": [match.group(3)],
                }
            )
            i += 1
        elif not line.strip():
            following = _next_non_blank(lines, i)
            if following is None or not LIST_RE.match(following):
                break
            i += 1
        elif entries and line[:1].isspace() and not _is_block_start(line):
            entries[-1]["lines"].append(line.strip())
            i += 1
        else:
            break
    return entries, i


def _build_list(entries: List[Dict], pos: int) -> Tuple[Node, int]:
    first = entries[pos]
    level = first["indent"]
    ordered = first["ordered"]

    node: Node = {"type": "orderedList" if ordered else "bulletList", "content": []}
    if ordered and first["start"] not in (None, 1):
        node["attrs"] = {"order": first["start"]}

    while pos < len(entries):
        entry = entries[pos]
        if entry["indent"] == level and entry["ordered"] == ordered:
            node["content"].append(
                {"type": "listItem", "content": [_paragraph(entry["lines"])]}
            )
            pos += 1
        elif entry["indent"] > level:
            child, pos = _build_list(entries, pos)
            node["content"][-1]["content"].append(child)
        else:
            break

    return node, pos


def _parse_list(lines: List[str], i: int) -> Tuple[List[Node], int]:
    entries, i = _collect_list_entries(lines, i)
    nodes: List[Node] = []
    pos = 0
    while pos < len(entries):
        node, pos = _build_list(entries, pos)
        nodes.append(node)
    return nodes, i


def _split_row(line: str) -> List[str]:
    row = line.strip()[1:-1]
    cells = re.split(r"(?<!\\)\|", row)
    return [cell.strip().replace("\\|", "|") for cell in cells]


def _parse_table(lines: List[str], i: int) -> Tuple[Node, int]:
    rows: List[List[str]] = []
    has_header = False
    while i < len(lines) and TABLE_RE.match(lines[i]):
        compact = lines[i].strip().replace(" ", "")
        if len(rows) == 1 and TABLE_SEPARATOR_RE.match(compact):
            has_header = True
        else:
            rows.append(_split_row(lines[i]))
        i += 1

    table_rows = []
    for index, row in enumerate(rows):
        cell_type = "tableHeader" if has_header and index == 0 else "tableCell"
        table_rows.append(
            {
                "type": "tableRow",
                "content": [
                    {"type": cell_type, "content": [_paragraph([cell])]}
                    for cell in row
                ],
            }
        )
    return {"type": "table", "content": table_rows}, i


def _parse_blocks(lines: List[str]) -> List[Node]:
    blocks: List[Node] = []
    i = 0

    while i < len(lines):
        line = lines[i]

        if not line.strip():
            i += 1
            continue

        fence = FENCE_RE.match(line)
        if fence:
            code_lines = []
            i += 1
            while i < len(lines) and not lines[i].strip().startswith(fence.group(1)):
                code_lines.append(lines[i])
                i += 1
            i += 1  # closing fence, if any
            node: Node = {"type": "codeBlock"}
            if fence.group(2):
                node["attrs"] = {"language": fence.group(2)}
            code = "\n".join(code_lines)
            if code:
                node["content"] = [_text(code)]
            blocks.append(node)
            continue

        heading = HEADING_RE.match(line)
        if heading:
            node = {"type": "heading", "attrs": {"level": len(heading.group(1))}}
            content = parse_inline(heading.group(2))
            if content:
                node["content"] = content
            blocks.append(node)
            i += 1
            continue

        if RULE_RE.match(line):
            blocks.append({"type": "rule"})
            i += 1
            continue

        if QUOTE_RE.match(line):
            quoted = []
            while i < len(lines) and QUOTE_RE.match(lines[i]):
                quoted.append(QUOTE_RE.match(lines[i]).group(1))
                i += 1
            inner = _parse_blocks(quoted) or [{"type": "paragraph"}]
            blocks.append({"type": "blockquote", "content": inner})
            continue

        if LIST_RE.match(line):
            lists, i = _parse_list(lines, i)
            blocks.extend(lists)
            continue

        if TABLE_RE.match(line):
            table, i = _parse_table(lines, i)
            blocks.append(table)
            continue

        para_lines = []
        while i < len(lines) and lines[i].strip():
            if para_lines and _is_block_start(lines[i]):
                break
            para_lines.append(lines[i])
            i += 1
        blocks.append(_paragraph(para_lines))

    return blocks


def markdown_to_adf(text: str) -> Node:
    """Convert markdown text to an ADF document."""
    if not isinstance(text, str):
        raise ConversionError(
            f"Expected markdown text, got {type(text).__name__}"
        )

    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    return {"type": "doc", "version": 1, "content": _parse_blocks(lines)}


# ---------------------------------------------------------------------------
# ADF -> markdown
# ---------------------------------------------------------------------------


def _children(node: Node) -> List[Node]:
    if not isinstance(node, dict):
        raise ConversionError(f"Malformed document node: {node!r}")
    if not isinstance(node.get("type"), str):
        raise ConversionError(f"Document node without a type: {node!r}")

    content = node.get("content", [])
    if content is None:
        return []
    if not isinstance(content, list):
        raise ConversionError(
            f"Content of '{node['type']}' node must be a list, "
            f"got {type(content).__name__}"
        )
    return content


def _attrs(node: Node) -> Dict[str, Any]:
    return node.get("attrs") or {}


def _apply_marks(text: str, marks: List[Node]) -> str:
    if not text:
        return text

    mark_types = {mark.get("type") for mark in marks}
    if "code" in mark_types:
        text = f"`{text}`"
    if "em" in mark_types:
        text = f"*{text}*"
    if "strong" in mark_types:
        text = f"**{text}**"
    if "strike" in mark_types:
        text = f"~~{text}~~"

    for mark in marks:
        if mark.get("type") == "link":
            href = (mark.get("attrs") or {}).get("href", "")
            text = f"[{text}]({href})"
    return text


def _format_date(timestamp: Any) -> str:
    try:
        moment = datetime.fromtimestamp(int(timestamp) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return str(timestamp)
    return moment.strftime("%Y-%m-%d")


def _render_inline(nodes: List[Node]) -> str:
    parts = []
    for node in nodes:
        children = _children(node)
        node_type = node["type"]
        attrs = _attrs(node)

        if node_type == "text":
            parts.append(_apply_marks(node.get("text", ""), node.get("marks") or []))
        elif node_type == "hardBreak":
            parts.append("\n")
        elif node_type == "mention":
            mention = attrs.get("text") or attrs.get("id", "")
            parts.append(mention if mention.startswith("@") else f"@{mention}")
        elif node_type == "emoji":
            parts.append(attrs.get("text") or attrs.get("shortName", ""))
        elif node_type in ("inlineCard", "blockCard", "embedCard"):
            parts.append(attrs.get("url", ""))
        elif node_type == "status":
            parts.append(f"[{attrs.get('text', '')}]")
        elif node_type == "date":
            parts.append(_format_date(attrs.get("timestamp")))
        else:
            parts.append(_render_inline(children))
    return "".join(parts)


def _indent(text: str, prefix: str, first: Optional[str] = None) -> str:
    lines = text.split("\n")
    out = [(first if first is not None else prefix) + lines[0]]
    out.extend(prefix + line if line else "" for line in lines[1:])
    return "\n".join(out)


def _render_list_item(item: Node, marker: str) -> str:
    body = _render_blocks(_children(item), separator="\n")
    return _indent(body, " " * len(marker), first=marker)


def _render_table(node: Node) -> str:
    rows = []
    header_done = False
    for index, row in enumerate(_children(node)):
        cells = []
        is_header = False
        for cell in _children(row):
            is_header = is_header or cell["type"] == "tableHeader"
            text = _render_blocks(_children(cell), separator=" ")
            cells.append(text.replace("\n", " ").replace("|", "\\|"))
        rows.append("| " + " | ".join(cells) + " |")
        if index == 0 and is_header and not header_done:
            rows.append("|" + "|".join(" --- " for _ in cells) + "|")
            header_done = True
    return "\n".join(rows)


def _render_block(node: Node) -> str:
    children = _children(node)
    node_type = node["type"]
    attrs = _attrs(node)

    if node_type == "paragraph":
        return _render_inline(children)

    if node_type == "heading":
        level = attrs.get("level", 1)
        return f"{'#' * level} {_render_inline(children)}"

    if node_type == "bulletList":
        return "\n".join(_render_list_item(item, "- ") for item in children)

    if node_type == "orderedList":
        start = attrs.get("order")
        if start is None:
            start = 1
        return "\n".join(
            _render_list_item(item, f"{start + offset}. ")
            for offset, item in enumerate(children)
        )

    if node_type == "taskList":
        lines = []
        for item in children:
            item_children = _children(item)
            checked = "x" if _attrs(item).get("state") == "DONE" else " "
            if item["type"] == "taskItem":
                text = _render_inline(item_children)
            else:
                text = _render_block(item)
            lines.append(_indent(text, "      ", first=f"- [{checked}] "))
        return "\n".join(lines)

    if node_type == "codeBlock":
        language = attrs.get("language") or ""
        code = _render_inline(children)
        return f"```{language}\n{code}\n```"

    if node_type in ("blockquote", "panel"):
        body = _render_blocks(children)
        return "\n".join(f"> {line}" if line else ">" for line in body.split("\n"))

    if node_type == "rule":
        return "---"

    if node_type == "table":
        return _render_table(node)

    if node_type in ("expand", "nestedExpand"):
        body = _render_blocks(children)
        title = attrs.get("title")
        return f"**{title}**\n\n{body}" if title else body

    if node_type in ("mediaSingle", "mediaGroup"):
        return "\n".join(_render_block(child) for child in children)

    if node_type == "media":
        return f"[attachment: {attrs.get('alt') or attrs.get('id', 'media')}]"

    if node_type in ("inlineCard", "blockCard", "embedCard"):
        return attrs.get("url", "")

    if node_type in ("text", "hardBreak", "mention", "emoji", "status", "date"):
        return _render_inline([node])

    # Unknown container: keep its content
    return _render_blocks(children)


def _render_blocks(nodes: List[Node], separator: str = "\n\n") -> str:
    rendered = (_render_block(node) for node in nodes)
    return separator.join(text for text in rendered if text)


def adf_to_markdown(document: Node) -> str:
    """Convert an ADF document (or any ADF node) to markdown text."""
    if document is None:
        return ""
    if isinstance(document, str):
        # API v2-style plain text bodies
        return document
    if not isinstance(document, dict):
        raise ConversionError(
            f"Expected an ADF document, got {type(document).__name__}"
        )

    if document.get("type") == "doc":
        return _render_blocks(_children(document)).strip("\n")
    return _render_block(document).strip("\n")
