"""
jira-cli - exception hierarchy

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

from typing import List, Optional


class JiraError(Exception):
    """Base exception for Jira-related errors."""

    pass


class MissingConfigurationError(JiraError):
    """Required configuration values are absent."""

    def __init__(self, missing: List[str]):
        noun = "variable" if len(missing) == 1 else "variables"
        super().__init__(
            f"Missing required environment {noun}: {' and '.join(missing)}"
        )
        self.missing = missing


class DiscoveryFailure(JiraError):
    """The field metadata listing could not be fetched."""

    def __init__(self, status_text: str):
        super().__init__(f"Could not fetch fields: {status_text}")
        self.status_text = status_text


class NotFoundError(JiraError):
    """No entity matched a lookup."""

    pass


class AmbiguousMatchError(JiraError):
    """More than one entity matched a fuzzy lookup."""

    def __init__(self, query: str, candidates: List[str]):
        super().__init__(
            f"Multiple sprints match your query '{query}': "
            f"{', '.join(candidates)}. Please be more specific."
        )
        self.query = query
        self.candidates = candidates


class APIError(JiraError):
    """A request to Jira returned a non-success response."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text
        self.reason = reason


RemoteRequestFailure = APIError


class AuthenticationError(APIError):
    """Authentication failed."""

    pass


class ConversionError(JiraError):
    """Malformed input to the markdown/document converter."""

    pass


class UserAborted(JiraError):
    """The editor session ended without usable content."""

    pass
