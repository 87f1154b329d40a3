"""
jira-cli - JQL and request payload composition

Everything here is a pure function of its arguments; the HTTP calls live in
client.py.

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

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .constants import Constants

# --sort choices mapped to JQL fields
SORT_FIELDS = {
    "id": "key",
    "title": "summary",
    "created": "created",
}

DEFAULT_ORDER = "ORDER BY updated DESC"
LIST_FIELDS = ["key", "summary", "status"]
INFER_PROJECT_JQL = f"assignee in (currentUser()) {DEFAULT_ORDER}"

# Marker for "leave the description alone" as opposed to clearing it (None)
UNSET = object()


@dataclass(frozen=True)
class SearchQuery:
    assignee_id: Optional[str] = None
    show_all: bool = False
    show_done: bool = False
    sort_by: Optional[str] = None


def normalize_ticket_id(ticket_id: str) -> str:
    """Ticket keys are always sent upper-case."""
    return ticket_id.strip().upper()


def build_jql(query: SearchQuery) -> str:
    """Build the JQL for a ticket listing."""
    if query.assignee_id:
        clauses = [f"assignee = '{query.assignee_id}'"]
    else:
        clauses = ["assignee in (currentUser())"]

    if query.show_done:
        clauses.append("resolution is not EMPTY")
    else:
        clauses.append("resolution is EMPTY")

    if not query.show_all:
        clauses.append("sprint in openSprints()")

    sort_field = SORT_FIELDS.get(query.sort_by) if query.sort_by else None
    if sort_field:
        order = f"ORDER BY {sort_field} ASC"
    else:
        order = DEFAULT_ORDER

    return f"{' AND '.join(clauses)} {order}"


def build_search_query(
    query: SearchQuery, story_points_field: Optional[str] = None
) -> Tuple[str, List[str]]:
    """Return the JQL and the field list for a ticket listing."""
    fields = list(LIST_FIELDS)
    if story_points_field:
        fields.append(story_points_field)
    return build_jql(query), fields


def assign_payload(account_id: str) -> Dict[str, Any]:
    return {"fields": {"assignee": {"accountId": account_id}}}


def create_payload(
    title: str,
    project_key: str,
    assignee_id: str,
    sprint_id: Optional[int] = None,
    sprint_field_id: Optional[str] = None,
    issue_type: str = Constants.DEFAULT_ISSUE_TYPE,
) -> Dict[str, Any]:
    """Payload for POST /issue; the sprint is set only when both ids are known."""
    fields: Dict[str, Any] = {
        "project": {"key": project_key},
        "summary": title,
        "issuetype": {"name": issue_type},
        "assignee": {"accountId": assignee_id},
    }
    if sprint_id and sprint_field_id:
        fields[sprint_field_id] = sprint_id
    return {"fields": fields}


def update_fields_payload(
    summary: Optional[str] = None, description: Any = UNSET
) -> Dict[str, Any]:
    """Payload for PUT /issue with only the fields being changed.

    A description of None clears it; leaving it UNSET keeps it untouched.
    """
    fields: Dict[str, Any] = {}
    if summary:
        fields["summary"] = summary
    if description is not UNSET:
        fields["description"] = description
    return {"fields": fields}


def story_points_payload(field_id: str, points: int) -> Dict[str, Any]:
    return {"fields": {field_id: points}}


def comment_payload(document: Dict[str, Any]) -> Dict[str, Any]:
    return {"body": document}


def transition_payload(transition_id: str) -> Dict[str, Any]:
    return {"transition": {"id": transition_id}}


def sprint_issues_payload(issue_keys: List[str]) -> Dict[str, Any]:
    return {"issues": list(issue_keys)}
