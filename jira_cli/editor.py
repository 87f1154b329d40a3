"""
jira-cli - external editor support

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
import shlex
import subprocess
import tempfile

from .constants import Constants
from .errors import UserAborted


def edit_text(initial: str, editor: str, prefix: str = "edit") -> str:
    """Open initial text in the user's editor and return what was saved.

    Raises UserAborted if the editor cannot be started or exits with a
    non-zero status.
    """
    logger = logging.getLogger(Constants.LOGGER_NAME)

    fd, path = tempfile.mkstemp(prefix=f"jira-cli-{prefix}-", suffix=".md")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(initial)

        # EDITOR may carry arguments, e.g. "code --wait"
        command = shlex.split(editor) + [path]
        logger.debug(f"Running editor: {command}")
        try:
            result = subprocess.run(command)
        except OSError as e:
            raise UserAborted(f"Could not start editor '{editor}': {e}") from e

        if result.returncode != 0:
            raise UserAborted(f"Editor closed with status {result.returncode}.")

        with open(path, encoding="utf-8") as f:
            return f.read()
    finally:
        try:
            os.unlink(path)
        except OSError:
            logger.debug(f"Could not remove temporary file {path}")
