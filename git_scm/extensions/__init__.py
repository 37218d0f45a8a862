# This file is part of git-scm.
#
# Copyright Datto, Inc.
# Author: Sam Clements <sclements@datto.com>
#
# Licensed under the Mozilla Public License Version 2.0.
# Fedora-License-Identifier: MPLv2.0
# SPDX-2.0-License-Identifier: MPL-2.0
# SPDX-3.0-License-Identifier: MPL-2.0
#
# git-scm is open source software.
# For more information on the license, see LICENSE.
# For more information on open source software, see https://opensource.org/osd.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

from __future__ import annotations

import typing

import pydantic

from git_scm.client import CheckoutCommand, CloneCommand, FetchCommand, GitClient, GitClientType
from git_scm.environment import Build

if typing.TYPE_CHECKING:
    from git_scm.scm import GitSCM


class GitSCMExtension(pydantic.BaseModel):
    """
    Customises how a job's repository is checked out.

    Each hook receives the command object before it is executed and may change
    any of its options. The default hooks leave commands untouched.
    """

    model_config = pydantic.ConfigDict(validate_assignment=True)

    display_name: typing.ClassVar[str] = ""

    @property
    def required_client(self) -> GitClientType:
        return GitClientType.ANY

    def decorate_clone_command(
        self,
        scm: GitSCM,
        build: Build,
        git: GitClient,
        cmd: CloneCommand,
    ) -> None:
        pass

    def decorate_fetch_command(self, scm: GitSCM, git: GitClient, cmd: FetchCommand) -> None:
        pass

    def decorate_checkout_command(
        self,
        scm: GitSCM,
        build: Build,
        git: GitClient,
        cmd: CheckoutCommand,
    ) -> None:
        pass
