"""
jira-cli - constants shared across the command-line client

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

from enum import Enum


class Constants:
    """Application constants."""

    # Environment
    ENV_DOMAIN = "JIRA_DOMAIN"
    ENV_AUTH = "JIRA_AUTH"
    ENV_EDITOR = "EDITOR"
    DEFAULT_EDITOR = "vim"
    DEFAULT_CONFIG_PATH = "~/.config/jira-cli"

    # API
    API_TIMEOUT = 30
    API_ROOT = "rest/api/3"
    AGILE_ROOT = "rest/agile/1.0"

    # Field-ID cache files, stored in the platform temp directory
    STORY_POINTS_CACHE_FILE = "jira_cli_sp_id.txt"
    SPRINT_CACHE_FILE = "jira_cli_sprint_field_id.txt"

    # Issues
    DEFAULT_ISSUE_TYPE = "Task"
    DONE_TRANSITION = "Done"

    LOGGER_NAME = "jira-cli"


class LogLevel(Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Colors:
    """ANSI color codes for terminal output."""

    YELLOW = "\033[33m"  # Comment headers
    BOLD = "\033[1m"  # Section titles
    DIM = "\033[2m"  # Separators
    RESET = "\033[0m"

    @staticmethod
    def disable_colors():
        """Disable colors for non-terminal output."""
        Colors.YELLOW = Colors.BOLD = Colors.DIM = Colors.RESET = ""
