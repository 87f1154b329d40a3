"""
jira-cli - console output helpers

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

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .adf import adf_to_markdown
from .constants import Colors

JIRA_TIMESTAMP_FORMATS = ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z")


def format_table(rows: Sequence[Dict[str, str]]) -> str:
    """Align rows into columns, `column -t` style, with a dashed separator."""
    if not rows:
        return ""

    headers = list(rows[0].keys())
    widths = {header: len(header) for header in headers}
    for row in rows:
        for header in headers:
            widths[header] = max(widths[header], len(row.get(header) or ""))

    lines = [
        "  ".join(header.ljust(widths[header]) for header in headers),
        "  ".join("-" * widths[header] for header in headers),
    ]
    for row in rows:
        lines.append(
            "  ".join((row.get(header) or "").ljust(widths[header]) for header in headers)
        )
    return "\n".join(line.rstrip() for line in lines)


def format_key_values(data: Dict[str, Optional[str]]) -> str:
    """Render `Key : value` lines, skipping empty values."""
    keys = [key for key, value in data.items() if value]
    if not keys:
        return ""
    width = max(len(key) for key in keys)
    return "\n".join(f"{key.ljust(width)} : {data[key]}" for key in keys)


def story_points_value(fields: Dict, field_id: Optional[str], default: str) -> str:
    """The story points of an issue as text, or default when unset."""
    if not field_id:
        return default
    value = fields.get(field_id)
    if value is None or value == "":
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def ticket_details(
    ticket: Dict, story_points_field: Optional[str], browse_url: str
) -> Dict[str, str]:
    """Flatten a ticket into the display fields of the `get` command."""
    fields = ticket.get("fields") or {}
    description = fields.get("description")

    return {
        "ID": ticket.get("key"),
        "Title": fields.get("summary"),
        "URL": browse_url,
        "Status": (fields.get("status") or {}).get("name"),
        "Assignee": (fields.get("assignee") or {}).get("displayName") or "Unassigned",
        "Reporter": (fields.get("reporter") or {}).get("displayName"),
        "Story Points": story_points_value(fields, story_points_field, "Not set"),
        "Comments": str((fields.get("comment") or {}).get("total", 0)),
        "Description": (
            adf_to_markdown(description) if description else "No description found."
        ),
    }


def ticket_rows(issues: List[Dict], story_points_field: Optional[str]) -> List[Dict]:
    rows = []
    for issue in issues:
        fields = issue.get("fields") or {}
        rows.append(
            {
                "ID": issue.get("key", ""),
                "Title": fields.get("summary") or "",
                "Points": story_points_value(fields, story_points_field, "N/A"),
                "Status": (fields.get("status") or {}).get("name", ""),
            }
        )
    return rows


def format_timestamp(value: Optional[str]) -> str:
    """Render a Jira timestamp in local time as `YYYY-MM-DD HH:MM:SS TZ`."""
    if not value:
        return ""
    for fmt in JIRA_TIMESTAMP_FORMATS:
        try:
            moment = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return moment.astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")
    return value


def format_comment(comment: Dict) -> str:
    author = (comment.get("author") or {}).get("displayName", "Unknown")
    created = format_timestamp(comment.get("created"))
    body = adf_to_markdown(comment.get("body")) if comment.get("body") else ""
    indented = "\n".join(f"    {line}" for line in body.split("\n"))

    header = f"{Colors.YELLOW}{author} | {created}{Colors.RESET}"
    return f"{header}\n\n{indented}"


def format_comments(comments: List[Dict]) -> str:
    return "\n\n".join(format_comment(comment) for comment in comments)
