"""
jira-cli - configuration loading

Credentials come from the JIRA_DOMAIN and JIRA_AUTH environment variables,
falling back to an optional INI file. The resulting JiraConfig is built once
in main() and handed to everything that talks to Jira.

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

import configparser
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .constants import Constants
from .errors import MissingConfigurationError


def _read_config_file(config_path: Optional[str]) -> configparser.ConfigParser:
    if config_path is None:
        config_path = os.path.expanduser(Constants.DEFAULT_CONFIG_PATH)

    config = configparser.ConfigParser()
    # A missing file simply yields an empty parser
    config.read(config_path)
    return config


def _file_value(config: configparser.ConfigParser, key: str) -> Optional[str]:
    return config.get("jira", key, fallback=None) or config.get(
        "DEFAULT", key, fallback=None
    )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class JiraConfig:
    domain: str
    auth_token: str
    editor: str = Constants.DEFAULT_EDITOR

    @classmethod
    def load(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config_path: Optional[str] = None,
    ) -> "JiraConfig":
        """Resolve credentials from the environment, then the config file."""
        if environ is None:
            environ = os.environ
        file_config = _read_config_file(config_path)

        domain = _clean(environ.get(Constants.ENV_DOMAIN)) or _clean(
            _file_value(file_config, "domain")
        )
        auth_token = _clean(environ.get(Constants.ENV_AUTH)) or _clean(
            _file_value(file_config, "auth")
        )
        editor = (
            _clean(environ.get(Constants.ENV_EDITOR))
            or _clean(_file_value(file_config, "editor"))
            or Constants.DEFAULT_EDITOR
        )

        missing: List[str] = []
        if not domain:
            missing.append(Constants.ENV_DOMAIN)
        if not auth_token:
            missing.append(Constants.ENV_AUTH)
        if missing:
            raise MissingConfigurationError(missing)

        return cls(domain=domain, auth_token=auth_token, editor=editor)

    @property
    def auth_header(self) -> str:
        # JIRA_AUTH already holds base64("email:token")
        return f"Basic {self.auth_token}"

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}"

    def browse_url(self, issue_key: str) -> str:
        return f"{self.base_url}/browse/{issue_key}"


def environment_status(environ: Optional[Mapping[str, str]] = None) -> str:
    """Describe which environment variables are configured."""
    if environ is None:
        environ = os.environ

    lines = []
    for name in (Constants.ENV_DOMAIN, Constants.ENV_AUTH):
        state = "configured" if _clean(environ.get(name)) else "not configured"
        lines.append(f"{name}: {state}")

    editor = _clean(environ.get(Constants.ENV_EDITOR))
    if editor:
        lines.append(f"{Constants.ENV_EDITOR}: configured ({editor})")
    else:
        lines.append(
            f"{Constants.ENV_EDITOR}: not configured "
            f"(defaults to {Constants.DEFAULT_EDITOR})"
        )
    return "\n  ".join(lines)


def create_sample_config(config_path: Optional[str] = None) -> str:
    """Create a sample config file and return its path."""
    if config_path is None:
        config_path = os.path.expanduser(Constants.DEFAULT_CONFIG_PATH)

    config_dir = os.path.dirname(config_path)
    if config_dir:
        os.makedirs(config_dir, exist_ok=True)

    sample_config = """[jira]
domain = your-company.atlassian.net
# base64 of "your-email@company.com:your-api-token"
auth = your-encoded-credentials-here
editor = vim

# Environment variables JIRA_DOMAIN, JIRA_AUTH and EDITOR take precedence.
"""

    with open(config_path, "w") as f:
        f.write(sample_config)

    return config_path
