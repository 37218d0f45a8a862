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

import pathlib
import typing

import pytest

import git_scm.changelog

RESOURCES = pathlib.Path(__file__).parent / "resources"


@pytest.fixture()
def changesets() -> typing.Callable[[str], typing.List[git_scm.changelog.ChangeSet]]:
    def parse(name: str) -> typing.List[git_scm.changelog.ChangeSet]:
        return git_scm.changelog.parse_file(RESOURCES / name)

    return parse


@pytest.fixture()
def paths(changesets) -> typing.Callable[[str], typing.Dict[str, git_scm.changelog.Path]]:
    """Paths from the first change set in a changelog, keyed by name."""

    def parse(name: str) -> typing.Dict[str, git_scm.changelog.Path]:
        return {path.path: path for path in changesets(name)[0].paths}

    return parse
