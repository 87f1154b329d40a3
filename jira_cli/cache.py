"""
jira-cli - field identifier cache

The Story Points and Sprint fields are custom fields whose ids differ between
Jira instances. Once discovered they are kept in small text files in the
temp directory so later invocations can skip the /field round-trip.

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
import os
import tempfile
from enum import Enum
from typing import Dict, Optional

from .constants import Constants


class FieldKind(Enum):
    """Dynamic fields whose ids are resolved per instance."""

    STORY_POINTS = Constants.STORY_POINTS_CACHE_FILE
    SPRINT = Constants.SPRINT_CACHE_FILE

    @property
    def cache_file(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return "Story Points" if self is FieldKind.STORY_POINTS else "Sprint"


class FieldIdStore:
    """Key-value store for discovered field ids."""

    def read(self, kind: FieldKind) -> Optional[str]:
        raise NotImplementedError

    def write(self, kind: FieldKind, value: str) -> None:
        raise NotImplementedError


class FileFieldIdStore(FieldIdStore):
    """One flat file per field kind, holding the raw id."""

    def __init__(self, directory: Optional[str] = None) -> None:
        self.directory = directory or tempfile.gettempdir()
        self.logger = logging.getLogger(Constants.LOGGER_NAME)

    def path_for(self, kind: FieldKind) -> str:
        return os.path.join(self.directory, kind.cache_file)

    def read(self, kind: FieldKind) -> Optional[str]:
        """Return the cached id, or None if the cache is unusable."""
        path = self.path_for(kind)
        try:
            with open(path, encoding="utf-8") as f:
                value = f.read().strip()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.debug(f"No usable {kind.label} cache at {path}: {e}")
            return None

        return value or None

    def write(self, kind: FieldKind, value: str) -> None:
        path = self.path_for(kind)
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(value)
        except OSError as e:
            # The cache only saves a request; discovery still works without it
            self.logger.debug(f"Could not write {kind.label} cache to {path}: {e}")


class MemoryFieldIdStore(FieldIdStore):
    def __init__(self, initial: Optional[Dict[FieldKind, str]] = None) -> None:
        self.values: Dict[FieldKind, str] = dict(initial or {})

    def read(self, kind: FieldKind) -> Optional[str]:
        return self.values.get(kind)

    def write(self, kind: FieldKind, value: str) -> None:
        self.values[kind] = value
