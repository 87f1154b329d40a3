"""
jira-cli - dynamic field discovery

Resolves the ids of the Story Points and Sprint custom fields by matching
field names from /rest/api/3/field. The Story Points match is a heuristic
over human-authored names ("Story Points", "Story point estimate", ...);
instances that name the field differently report story points as unset.

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
import re
from typing import Dict, Iterable, Optional

from .cache import FieldIdStore, FieldKind
from .constants import Constants
from .errors import APIError, DiscoveryFailure, NotFoundError

STORY_POINTS_PATTERN = re.compile(r"^story.?points?( estimate)?$", re.IGNORECASE)


def matches_field(kind: FieldKind, name: Optional[str]) -> bool:
    """Check whether a field name denotes the given field kind."""
    if not name:
        return False
    if kind is FieldKind.SPRINT:
        return name.lower() == "sprint"
    return STORY_POINTS_PATTERN.match(name) is not None


def find_field_id(kind: FieldKind, fields: Iterable[Dict]) -> Optional[str]:
    """Return the id of the first field matching kind, if any."""
    for field in fields:
        if matches_field(kind, field.get("name")):
            return field.get("id")
    return None


class FieldResolver:
    def __init__(self, client, store: FieldIdStore) -> None:
        self.client = client
        self.store = store
        self.logger = logging.getLogger(Constants.LOGGER_NAME)
        self._resolved: Dict[FieldKind, Optional[str]] = {}

    def discover(self, kind: FieldKind) -> Optional[str]:
        """Look the field up on the server and cache a hit.

        Returns None when the instance has no such field; that is a normal
        outcome, not an error. A failed metadata request raises
        DiscoveryFailure.
        """
        try:
            fields = self.client.get_fields()
        except APIError as e:
            status_text = e.reason or (str(e.status_code) if e.status_code else str(e))
            raise DiscoveryFailure(status_text) from e

        field_id = find_field_id(kind, fields)
        if field_id is None:
            self.logger.debug(f"No {kind.label} field in this instance")
            return None

        self.logger.debug(f"Discovered {kind.label} field: {field_id}")
        self.store.write(kind, field_id)
        return field_id

    def get_field_id(self, kind: FieldKind) -> Optional[str]:
        """Return the cached field id, discovering it on a cache miss."""
        if kind in self._resolved:
            return self._resolved[kind]

        field_id = self.store.read(kind)
        if field_id:
            self.logger.debug(f"Using cached {kind.label} field: {field_id}")
        else:
            field_id = self.discover(kind)

        self._resolved[kind] = field_id
        return field_id

    def story_points_field_id(self) -> Optional[str]:
        return self.get_field_id(FieldKind.STORY_POINTS)

    def sprint_field_id(self) -> Optional[str]:
        return self.get_field_id(FieldKind.SPRINT)

    def require_story_points_field_id(self) -> str:
        field_id = self.story_points_field_id()
        if not field_id:
            raise NotFoundError(
                "'Story Points' field not found in this Jira instance."
            )
        return field_id
