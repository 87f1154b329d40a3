"""
jira-cli - command-line interface

Each subcommand maps onto one or a few Jira REST calls. Run with --help for
the list of commands.

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

import argparse
import logging
import re
import sys
from dataclasses import dataclass
from typing import List, Optional

from . import query as q
from .adf import adf_to_markdown, markdown_to_adf
from .cache import FileFieldIdStore
from .client import JiraClient, get_ticket, list_tickets
from .config import JiraConfig, create_sample_config, environment_status
from .constants import Colors, Constants, LogLevel
from .editor import edit_text
from .errors import JiraError, NotFoundError, UserAborted
from .fields import FieldResolver
from .logs import setup_logging
from .render import (
    format_comments,
    format_key_values,
    format_table,
    story_points_value,
    ticket_details,
    ticket_rows,
)


POINTS_RE = re.compile(r"\s*([+-]?\d+)")


@dataclass
class AppContext:
    config: JiraConfig
    client: JiraClient
    resolver: FieldResolver


def setup_context(args) -> AppContext:
    """Load configuration and build the API client and field resolver."""
    config = JiraConfig.load(config_path=args.config)
    client = JiraClient(config)
    resolver = FieldResolver(client, FileFieldIdStore())
    return AppContext(config=config, client=client, resolver=resolver)


def _format_points(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def action_get(args) -> None:
    """Show the details of a ticket, or a single field of it."""
    ctx = setup_context(args)
    ticket_id = q.normalize_ticket_id(args.ticket_id)

    ticket = get_ticket(ctx.client, ctx.resolver, ticket_id)
    details = ticket_details(
        ticket,
        ctx.resolver.story_points_field_id(),
        ctx.config.browse_url(ticket.get("key", ticket_id)),
    )

    if args.field:
        wanted = args.field.lower()
        for key, value in details.items():
            if key.lower() == wanted:
                print(value)
                return
        raise NotFoundError(
            f"Field '{args.field}' not found. "
            f"Available fields: {', '.join(details)}"
        )

    description = details.pop("Description")
    print("\n--- Ticket Details ---\n")
    print(format_key_values(details))
    print("\n--- Description ---\n")
    print(description)


def action_list(args) -> None:
    """List tickets, by default yours in open sprints."""
    ctx = setup_context(args)

    assignee_id = None
    if args.user:
        assignee_id = ctx.client.find_account_id(args.user)

    issues = list_tickets(
        ctx.client,
        ctx.resolver,
        q.SearchQuery(
            assignee_id=assignee_id,
            show_all=bool(args.all),
            show_done=bool(args.done),
            sort_by=args.sort,
        ),
    )

    if not issues:
        print("No tickets found.")
        return

    print(format_table(ticket_rows(issues, ctx.resolver.story_points_field_id())))


def action_list_all(args) -> None:
    """Shortcut for list --all."""
    args.all = True
    action_list(args)


def action_list_done(args) -> None:
    """Shortcut for list --done."""
    args.done = True
    action_list(args)


def action_create(args) -> None:
    """Create a ticket assigned to the current user, in the active sprint."""
    logger = logging.getLogger(Constants.LOGGER_NAME)
    ctx = setup_context(args)

    assignee_id = ctx.client.get_current_account_id()
    if args.project:
        project_key = args.project.upper()
    else:
        project_key = ctx.client.infer_project_key()
    print(f"Using project: {project_key}")

    sprint = None
    sprint_field_id = None
    try:
        board_id = ctx.client.get_board_id(project_key)
        sprint = ctx.client.get_active_sprint(board_id)
        sprint_field_id = ctx.resolver.sprint_field_id()
    except JiraError as e:
        # Creating the ticket still works without a sprint
        logger.debug(f"Active sprint lookup failed: {e}")
        print(
            "Warning: Could not find an active sprint to assign the ticket to. "
            f"{e}",
            file=sys.stderr,
        )
        sprint = None

    if not sprint_field_id:
        sprint = None

    print("Creating ticket...")
    new_ticket = ctx.client.create_issue(
        q.create_payload(
            args.title,
            project_key,
            assignee_id,
            sprint_id=sprint["id"] if sprint else None,
            sprint_field_id=sprint_field_id,
        )
    )

    print(f"\nSuccessfully created ticket: {new_ticket['key']}")
    print(f"  Title: {args.title}")
    print(f"  URL: {ctx.config.browse_url(new_ticket['key'])}")
    if sprint:
        print(f"  Assigned to sprint: \"{sprint['name']}\"")


def action_done(args) -> None:
    """Transition a ticket to Done."""
    ctx = setup_context(args)
    ticket_id = q.normalize_ticket_id(args.ticket_id)

    print(f"Finding '{Constants.DONE_TRANSITION}' transition for {ticket_id}...")
    transition_id = ctx.client.find_transition_id(ticket_id, Constants.DONE_TRANSITION)

    print(f"Transitioning {ticket_id} to {Constants.DONE_TRANSITION}...")
    ctx.client.transition_issue(ticket_id, transition_id)

    print(
        f"\nTicket {ticket_id} successfully transitioned to "
        f"{Constants.DONE_TRANSITION}."
    )


def action_assign(args) -> None:
    """Assign a ticket to a user."""
    ctx = setup_context(args)
    ticket_id = q.normalize_ticket_id(args.ticket_id)

    print(f"Finding user '{args.user}'...")
    assignee_id = ctx.client.find_account_id(args.user)

    print(f"Assigning ticket {ticket_id} to {args.user} ({assignee_id})...")
    ctx.client.assign_issue(ticket_id, assignee_id)

    print(f"\nSuccessfully assigned ticket {ticket_id} to {args.user}.")


def action_assignee(args) -> None:
    """Look up the account id of a user."""
    ctx = setup_context(args)

    print(f"Looking up user '{args.user}'...")
    account_id = ctx.client.find_account_id(args.user)
    print(f"Account ID for {args.user}: {account_id}")


def action_assignees(args) -> None:
    """List the users that can be assigned tickets in a project."""
    ctx = setup_context(args)

    if args.project_key:
        project_key = args.project_key.upper()
    else:
        print("No project key provided, attempting to infer from your recent tickets...")
        project_key = ctx.client.infer_project_key()
        print(f"Inferred project: {project_key}\n")

    users = ctx.client.get_assignable_users(project_key)
    if not users:
        print("No assignable users found for this project.")
        return

    rows = [
        {
            "Display Name": user.get("displayName") or "",
            "Account ID": user.get("accountId") or "",
            "Email": user.get("emailAddress") or "",
        }
        for user in users
    ]
    print(f"Assignable users for project '{project_key}':")
    print(format_table(rows))


def action_sprint(args) -> None:
    """Show the active sprint, or move a ticket into a sprint."""
    if bool(args.ticket_id) != bool(args.sprint_query):
        print(
            "Invalid arguments. Use 'sprint' to see the active sprint, or "
            "'sprint <ticket-id> <sprint-query>' to assign a ticket.",
            file=sys.stderr,
        )
        sys.exit(1)

    ctx = setup_context(args)

    if not args.ticket_id:
        print("Finding active sprint...")
        project_key = ctx.client.infer_project_key()
        board_id = ctx.client.get_board_id(project_key)
        sprint = ctx.client.get_active_sprint(board_id)

        print("\n--- Active Sprint ---")
        print(f"Name: {sprint.get('name')}")
        print(f"ID: {sprint.get('id')}")
        print(f"Goal: {sprint.get('goal') or 'Not set'}")
        return

    ticket_id = q.normalize_ticket_id(args.ticket_id)
    print(f"Assigning ticket {ticket_id} to a sprint matching '{args.sprint_query}'...")

    project_key = ctx.client.get_project_key(ticket_id)
    print(f"Ticket belongs to project {project_key}.")

    board_id = ctx.client.get_board_id(project_key)
    print(f"Found board {board_id} for project.")

    sprint = ctx.client.find_sprint_by_name(board_id, args.sprint_query)
    print(f"Found sprint: \"{sprint['name']}\" (ID: {sprint['id']})")

    ctx.client.assign_to_sprint(sprint["id"], [ticket_id])
    print(f"\nSuccessfully assigned {ticket_id} to sprint \"{sprint['name']}\".")


def _parse_points(points: str) -> int:
    # Leading integer wins, so "5.0" and "5pts" both mean 5
    match = POINTS_RE.match(points)
    value = int(match.group(1)) if match else -1
    if value < 0:
        raise JiraError("Story points must be a non-negative integer.")
    return value


def action_sp(args) -> None:
    """Show or set story points, or summarize your points in open sprints."""
    ctx = setup_context(args)
    field_id = ctx.resolver.require_story_points_field_id()

    if args.ticket_id and args.points is not None:
        ticket_id = q.normalize_ticket_id(args.ticket_id)
        points = _parse_points(args.points)
        ctx.client.set_story_points(ticket_id, field_id, points)
        print(f"Successfully set Story Points to {points} for ticket {ticket_id}.")
        return

    if args.ticket_id:
        ticket_id = q.normalize_ticket_id(args.ticket_id)
        ticket = get_ticket(ctx.client, ctx.resolver, ticket_id)
        points = story_points_value(ticket.get("fields") or {}, field_id, "Not set")
        print(f"Story Points for {ticket_id}: {points}")
        return

    open_tickets = list_tickets(ctx.client, ctx.resolver, q.SearchQuery(show_done=False))
    done_tickets = list_tickets(ctx.client, ctx.resolver, q.SearchQuery(show_done=True))

    def sum_points(issues: List[dict]) -> float:
        return sum((issue.get("fields") or {}).get(field_id) or 0 for issue in issues)

    open_points = sum_points(open_tickets)
    done_points = sum_points(done_tickets)

    print("--- Story Point Summary (Your Tickets in Open Sprints) ---")
    print(f"  Open:   {_format_points(open_points)}")
    print(f"  Closed: {_format_points(done_points)}")
    print(f"  Total:  {_format_points(open_points + done_points)}")


def action_edit(args) -> None:
    """Edit the title and/or description of a ticket."""
    if not args.title and args.description is None:
        print(
            'Error: You must provide a field to edit, e.g., --title "New Title" '
            "or --description",
            file=sys.stderr,
        )
        sys.exit(1)

    ctx = setup_context(args)
    ticket_id = q.normalize_ticket_id(args.ticket_id)
    description = q.UNSET

    if isinstance(args.description, str):
        print("Updating description from text argument...")
        if args.description.strip():
            description = markdown_to_adf(args.description)
        else:
            description = None
    elif args.description is True:
        print("Fetching current description...")
        ticket = ctx.client.get_issue(ticket_id, ["description"])
        current = (ticket.get("fields") or {}).get("description")
        initial = adf_to_markdown(current) if current else ""

        print("Opening editor... (save and close the file to continue)")
        try:
            edited = edit_text(initial, ctx.config.editor, prefix="edit")
        except UserAborted as e:
            logging.getLogger(Constants.LOGGER_NAME).debug(f"Editor aborted: {e}")
            print(
                "Editor closed without successful save. Aborting description update.",
                file=sys.stderr,
            )
            edited = initial

        if edited.strip() == initial.strip():
            print("Description unchanged. Skipping update.")
        elif edited.strip():
            description = markdown_to_adf(edited)
        else:
            description = None

    payload = q.update_fields_payload(summary=args.title, description=description)
    if not payload["fields"]:
        print("No changes to apply.")
        return

    print(f"Updating ticket {ticket_id}...")
    ctx.client.update_issue(ticket_id, payload)
    print(f"Successfully updated ticket {ticket_id}.")


def action_comment(args) -> None:
    """Add a comment to a ticket, opening an editor when no text is given."""
    ctx = setup_context(args)
    ticket_id = q.normalize_ticket_id(args.ticket_id)
    text = args.text

    if not text:
        print("Opening editor... (save and close the file to post comment)")
        try:
            text = edit_text("", ctx.config.editor, prefix="comment")
        except UserAborted as e:
            print(f"{e} Aborting comment.")
            return

    if not text or not text.strip():
        print("Comment is empty. Aborting.")
        return

    document = markdown_to_adf(text)
    print(f"Adding comment to {ticket_id}...")
    ctx.client.add_comment(ticket_id, document)
    print(f"\nSuccessfully added comment to {ticket_id}.")


def action_comments(args) -> None:
    """List the comments of a ticket."""
    ctx = setup_context(args)
    ticket_id = q.normalize_ticket_id(args.ticket_id)

    comments = ctx.client.get_comments(ticket_id)
    if not comments:
        print("No comments found for this ticket.")
        return

    # Disable colors if not outputting to a terminal
    if not sys.stdout.isatty():
        Colors.disable_colors()

    print(format_comments(comments))


def action_create_config(args) -> None:
    """Create a sample config file."""
    path = create_sample_config(args.config)
    print(f"Sample config created at {path}")
    print("Please edit the file with your actual Jira credentials.")


def action_test_auth(args) -> None:
    """Test Jira authentication."""
    ctx = setup_context(args)
    print(f"Testing authentication with {ctx.config.domain}...")

    user_info = ctx.client.get_current_user()
    print("✓ Authentication successful!")
    print(f"  User: {user_info.get('displayName', 'Unknown')}")
    print(f"  Email: {user_info.get('emailAddress', 'Unknown')}")
    print(f"  Account ID: {user_info.get('accountId', 'Unknown')}")


def _add_list_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("user", nargs="?", help="User name or email to filter by")
    parser.add_argument(
        "-a",
        "--all",
        action="store_true",
        help="List all tickets (not just from open sprints)",
    )
    parser.add_argument(
        "-d",
        "--done",
        action="store_true",
        help="List resolved/done tickets instead of open ones",
    )
    parser.add_argument(
        "--sort",
        choices=sorted(q.SORT_FIELDS),
        help="Sort tickets by a specific field",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jira",
        description="Command-line client for Jira tickets",
        epilog=f"Environment Variables:\n  {environment_status()}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        help=f"Path to config file (default: {Constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        default=LogLevel.WARNING.value,
        help="Set logging level",
    )
    parser.add_argument(
        "--no-timestamp", action="store_true", help="Disable timestamps in log output"
    )

    subparsers = parser.add_subparsers(
        dest="action", required=True, help="Available actions"
    )

    # get
    get_parser = subparsers.add_parser(
        "get",
        aliases=["g"],
        help="Show details for a ticket, or just a specific field",
    )
    get_parser.add_argument("ticket_id", help="The ID of the ticket (e.g., PROJ-123)")
    get_parser.add_argument(
        "field", nargs="?", help="A specific field to display (e.g., Title, Status)"
    )
    get_parser.set_defaults(func=action_get)

    # list, la, ld
    list_parser = subparsers.add_parser(
        "list", aliases=["l"], help="List tickets (defaults to you in open sprints)"
    )
    _add_list_arguments(list_parser)
    list_parser.set_defaults(func=action_list)

    la_parser = subparsers.add_parser("la", help="Shortcut for list --all")
    _add_list_arguments(la_parser)
    la_parser.set_defaults(func=action_list_all)

    ld_parser = subparsers.add_parser("ld", help="Shortcut for list --done")
    _add_list_arguments(ld_parser)
    ld_parser.set_defaults(func=action_list_done)

    # create
    create_parser = subparsers.add_parser(
        "create", aliases=["c"], help="Create a new ticket assigned to you"
    )
    create_parser.add_argument("title", help="The title of the ticket")
    create_parser.add_argument(
        "-p", "--project", help="The project key (e.g., PROJ). Inferred if omitted."
    )
    create_parser.set_defaults(func=action_create)

    # done
    done_parser = subparsers.add_parser(
        "done", aliases=["d"], help="Transition a ticket to the 'Done' status"
    )
    done_parser.add_argument(
        "ticket_id", help="The ID of the ticket to close (e.g., PROJ-123)"
    )
    done_parser.set_defaults(func=action_done)

    # assign
    assign_parser = subparsers.add_parser(
        "assign", aliases=["a"], help="Assign a ticket to a user"
    )
    assign_parser.add_argument(
        "ticket_id", help="The ID of the ticket to assign (e.g., PROJ-123)"
    )
    assign_parser.add_argument(
        "user", help="The name or email of the user to assign the ticket to"
    )
    assign_parser.set_defaults(func=action_assign)

    # assignee
    assignee_parser = subparsers.add_parser(
        "assignee", help="Look up a user's account ID by name or email"
    )
    assignee_parser.add_argument("user", help="The name or email of the user")
    assignee_parser.set_defaults(func=action_assignee)

    # assignees
    assignees_parser = subparsers.add_parser(
        "assignees", help="List assignable users for a project"
    )
    assignees_parser.add_argument(
        "project_key",
        nargs="?",
        help="The project key (e.g., PROJ). Inferred if omitted.",
    )
    assignees_parser.set_defaults(func=action_assignees)

    # sprint
    sprint_parser = subparsers.add_parser(
        "sprint",
        aliases=["s"],
        help="Show active sprint or assign a ticket to a sprint",
    )
    sprint_parser.add_argument("ticket_id", nargs="?", help="The ticket to move")
    sprint_parser.add_argument(
        "sprint_query", nargs="?", help="Part of the target sprint's name"
    )
    sprint_parser.set_defaults(func=action_sprint)

    # sp
    sp_parser = subparsers.add_parser(
        "sp",
        help="Show or set story points, or summarize your points in open sprints",
    )
    sp_parser.add_argument("ticket_id", nargs="?", help="The ticket to show or set")
    sp_parser.add_argument("points", nargs="?", help="Story points to set")
    sp_parser.set_defaults(func=action_sp)

    # edit
    edit_parser = subparsers.add_parser(
        "edit", aliases=["e"], help="Edit a ticket's fields"
    )
    edit_parser.add_argument(
        "ticket_id", help="The ID of the ticket to edit (e.g., PROJ-123)"
    )
    edit_parser.add_argument("--title", help="Set a new title for the ticket")
    edit_parser.add_argument(
        "--description",
        nargs="?",
        const=True,
        default=None,
        help="Set a new description. Provide a string for a direct update, "
        "or use the flag alone to open an editor.",
    )
    edit_parser.set_defaults(func=action_edit)

    # comment
    comment_parser = subparsers.add_parser(
        "comment",
        help="Add a comment to a ticket. Opens an editor if text is not provided.",
    )
    comment_parser.add_argument("ticket_id", help="The ID of the ticket to comment on")
    comment_parser.add_argument(
        "text", nargs="?", help="The comment text. If omitted, an editor will open."
    )
    comment_parser.set_defaults(func=action_comment)

    # comments
    comments_parser = subparsers.add_parser(
        "comments", help="List all comments for a ticket"
    )
    comments_parser.add_argument(
        "ticket_id", help="The ID of the ticket to list comments for"
    )
    comments_parser.set_defaults(func=action_comments)

    # create-config
    create_config_parser = subparsers.add_parser(
        "create-config", help="Create a sample config file"
    )
    create_config_parser.set_defaults(func=action_create_config)

    # test-auth
    test_auth_parser = subparsers.add_parser(
        "test-auth", help="Test Jira authentication"
    )
    test_auth_parser.set_defaults(func=action_test_auth)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set up logging
    setup_logging(LogLevel(args.log_level), not args.no_timestamp)

    logger = logging.getLogger(Constants.LOGGER_NAME)
    logger.info(f"Starting jira-cli with action: {args.action}")

    try:
        args.func(args)
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        print("\nOperation cancelled.", file=sys.stderr)
        sys.exit(1)
    except JiraError as e:
        logger.debug(f"{type(e).__name__} in {args.action}: {e}")
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
