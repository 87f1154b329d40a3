"""
jira-cli - Jira REST client

Thin wrapper over requests.Session. Each method is one API call; every
non-success response is raised as APIError carrying the status and the raw
response body. There are no retries.

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

import logging
from typing import Any, Dict, List, Optional

import requests

from . import query as q
from .constants import Constants
from .config import JiraConfig
from .errors import AmbiguousMatchError, APIError, AuthenticationError, NotFoundError


class JiraClient:
    def __init__(
        self, config: JiraConfig, session: Optional[requests.Session] = None
    ) -> None:
        self.config = config
        self.api_url = f"{config.base_url}/{Constants.API_ROOT}"
        self.agile_url = f"{config.base_url}/{Constants.AGILE_ROOT}"
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": config.auth_header,
                "Accept": "application/json",
            }
        )
        self.logger = logging.getLogger(Constants.LOGGER_NAME)

    def _handle_response_errors(
        self, response: requests.Response, context: str
    ) -> None:
        """Raise for any non-success HTTP response."""
        if response.ok:
            return

        message = f"{context}: {response.status_code} {response.reason}"
        if response.text:
            message = f"{message}\n{response.text}"

        error_class = (
            AuthenticationError if response.status_code in (401, 403) else APIError
        )
        raise error_class(
            message,
            status_code=response.status_code,
            response_text=response.text,
            reason=response.reason,
        )

    def _request(
        self,
        method: str,
        url: str,
        context: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        self.logger.debug(f"{method} {url} params={params}")
        try:
            if payload is None:
                response = self.session.request(
                    method, url, params=params, timeout=Constants.API_TIMEOUT
                )
            else:
                # json= sets Content-Type: application/json
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=payload,
                    timeout=Constants.API_TIMEOUT,
                )
        except requests.RequestException as e:
            raise APIError(f"{context}: {e}") from e

        self._handle_response_errors(response, context)

        # 204 No Content on most updates
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Fields

    def get_fields(self) -> List[Dict]:
        """List every field defined in this instance."""
        return self._request("GET", f"{self.api_url}/field", "Error fetching fields")

    # Issues

    def get_issue(self, issue_key: str, fields: Optional[List[str]] = None) -> Dict:
        params = {"fields": ",".join(f for f in fields if f)} if fields else None
        return self._request(
            "GET",
            f"{self.api_url}/issue/{issue_key}",
            f"Error fetching ticket {issue_key}",
            params=params,
        )

    def get_project_key(self, issue_key: str) -> str:
        issue = self._request(
            "GET",
            f"{self.api_url}/issue/{issue_key}",
            f"Could not get project key for ticket {issue_key}",
            params={"fields": "project"},
        )
        return issue["fields"]["project"]["key"]

    def search(
        self, jql: str, fields: List[str], max_results: Optional[int] = None
    ) -> List[Dict]:
        """Run a JQL search and return the first page of issues."""
        params: Dict[str, Any] = {"jql": jql, "fields": ",".join(fields)}
        if max_results is not None:
            params["maxResults"] = max_results
        data = self._request(
            "GET", f"{self.api_url}/search/jql", "Error fetching tickets", params=params
        )
        return (data or {}).get("issues") or []

    def create_issue(self, payload: Dict[str, Any]) -> Dict:
        return self._request(
            "POST", f"{self.api_url}/issue", "Error creating ticket", payload=payload
        )

    def update_issue(self, issue_key: str, payload: Dict[str, Any]) -> None:
        self._request(
            "PUT",
            f"{self.api_url}/issue/{issue_key}",
            f"Error updating ticket {issue_key}",
            payload=payload,
        )

    def assign_issue(self, issue_key: str, account_id: str) -> None:
        self._request(
            "PUT",
            f"{self.api_url}/issue/{issue_key}",
            f"Error assigning ticket {issue_key}",
            payload=q.assign_payload(account_id),
        )

    def set_story_points(self, issue_key: str, field_id: str, points: int) -> None:
        self._request(
            "PUT",
            f"{self.api_url}/issue/{issue_key}",
            f"Error setting story points for {issue_key}",
            payload=q.story_points_payload(field_id, points),
        )

    # Transitions

    def get_transitions(self, issue_key: str) -> List[Dict]:
        data = self._request(
            "GET",
            f"{self.api_url}/issue/{issue_key}/transitions",
            f"Error fetching transitions for {issue_key}",
        )
        return (data or {}).get("transitions") or []

    def find_transition_id(self, issue_key: str, transition_name: str) -> str:
        """Find a transition by name, ignoring case."""
        for transition in self.get_transitions(issue_key):
            if transition.get("name", "").lower() == transition_name.lower():
                return transition["id"]

        raise NotFoundError(
            f"Could not find transition '{transition_name}' for ticket {issue_key}"
        )

    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        self._request(
            "POST",
            f"{self.api_url}/issue/{issue_key}/transitions",
            f"Error transitioning ticket {issue_key}",
            payload=q.transition_payload(transition_id),
        )

    # Comments

    def get_comments(self, issue_key: str) -> List[Dict]:
        data = self._request(
            "GET",
            f"{self.api_url}/issue/{issue_key}/comment",
            f"Error getting comments for {issue_key}",
        )
        return (data or {}).get("comments") or []

    def add_comment(self, issue_key: str, document: Dict[str, Any]) -> Dict:
        return self._request(
            "POST",
            f"{self.api_url}/issue/{issue_key}/comment",
            f"Error adding comment to {issue_key}",
            payload=q.comment_payload(document),
        )

    # Users

    def get_current_user(self) -> Dict:
        return self._request(
            "GET", f"{self.api_url}/myself", "Error fetching current user"
        )

    def get_current_account_id(self) -> str:
        return self.get_current_user()["accountId"]

    def search_users(self, user_query: str) -> List[Dict]:
        return (
            self._request(
                "GET",
                f"{self.api_url}/user/search",
                f"Error searching for user '{user_query}'",
                params={"query": user_query},
            )
            or []
        )

    def find_account_id(self, user_query: str) -> str:
        """Return the account id of the first user matching a name or email."""
        users = self.search_users(user_query)
        if not users:
            raise NotFoundError(f"No user found matching '{user_query}'")
        return users[0]["accountId"]

    def get_assignable_users(self, project_key: str) -> List[Dict]:
        return (
            self._request(
                "GET",
                f"{self.api_url}/user/assignable/search",
                f"Could not retrieve assignees for project '{project_key}'",
                params={"project": project_key},
            )
            or []
        )

    def infer_project_key(self) -> str:
        """Guess the project from the user's most recently updated ticket."""
        issues = self._request(
            "GET",
            f"{self.api_url}/search/jql",
            "Failed to infer project key",
            params={"jql": q.INFER_PROJECT_JQL, "fields": "project", "maxResults": 1},
        )
        issues = (issues or {}).get("issues") or []
        if not issues:
            raise NotFoundError(
                "Could not infer project. Please specify a project key."
            )
        return issues[0]["fields"]["project"]["key"]

    # Boards and sprints

    def get_board_id(self, project_key: str) -> int:
        data = self._request(
            "GET",
            f"{self.agile_url}/board",
            f"Could not find board for project {project_key}",
            params={"projectKeyOrId": project_key},
        )
        boards = (data or {}).get("values") or []
        if not boards:
            raise NotFoundError(f"No boards found for project {project_key}")
        return boards[0]["id"]

    def get_sprints(self, board_id: int, state: Optional[str] = None) -> List[Dict]:
        params = {"state": state} if state else None
        data = self._request(
            "GET",
            f"{self.agile_url}/board/{board_id}/sprint",
            f"Could not get sprints for board {board_id}",
            params=params,
        )
        return (data or {}).get("values") or []

    def get_active_sprint(self, board_id: int) -> Dict:
        sprints = self.get_sprints(board_id, state="active")
        if not sprints:
            raise NotFoundError(f"No active sprint found for board {board_id}")
        return sprints[0]

    def find_sprint_by_name(self, board_id: int, sprint_query: str) -> Dict:
        """Find the single sprint whose name contains the query, ignoring case."""
        needle = sprint_query.lower()
        matching = [
            sprint
            for sprint in self.get_sprints(board_id)
            if needle in sprint.get("name", "").lower()
        ]

        if not matching:
            raise NotFoundError(f"No sprint found matching '{sprint_query}'")
        if len(matching) > 1:
            raise AmbiguousMatchError(
                sprint_query, [sprint["name"] for sprint in matching]
            )
        return matching[0]

    def assign_to_sprint(self, sprint_id: int, issue_keys: List[str]) -> None:
        self._request(
            "POST",
            f"{self.agile_url}/sprint/{sprint_id}/issue",
            f"Error assigning {', '.join(issue_keys)} to sprint {sprint_id}",
            payload=q.sprint_issues_payload(issue_keys),
        )


TICKET_FIELDS = ["summary", "status", "assignee", "reporter", "comment", "description"]


def list_tickets(client: JiraClient, resolver, search: q.SearchQuery) -> List[Dict]:
    """Search tickets for a listing, including story points when available."""
    jql, fields = q.build_search_query(search, resolver.story_points_field_id())
    client.logger.debug(f"JQL: {jql}")
    return client.search(jql, fields)


def get_ticket(client: JiraClient, resolver, issue_key: str) -> Dict:
    """Fetch a ticket with the fields the detail views need."""
    fields = TICKET_FIELDS + [resolver.story_points_field_id()]
    return client.get_issue(issue_key, fields)
