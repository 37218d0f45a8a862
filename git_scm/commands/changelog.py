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

import click
import pydantic
import structlog

import git_scm.browser
import git_scm.changelog

logger = structlog.get_logger(logger_name=__name__)


@click.command(name="changelog")
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=pathlib.Path),
)
@click.option(
    "--browser",
    "browser_type",
    type=click.Choice(sorted(git_scm.browser.BROWSERS)),
    default=None,
    help="Repository browser used to render links.",
)
@click.option("--url", "url", type=click.STRING, default=None, help="Repository browser URL.")
@click.option(
    "--committer",
    "author_or_committer",
    is_flag=True,
    default=False,
    help="Attribute change sets to the committer instead of the author.",
)
def main(
    path: pathlib.Path,
    browser_type: typing.Optional[str],
    url: typing.Optional[str],
    author_or_committer: bool,
) -> None:
    """Print change sets from a raw changelog file with repository browser links."""
    browser = None
    if browser_type is not None:
        if url is None:
            raise click.UsageError("--url is required when --browser is set")
        try:
            browser = git_scm.browser.BROWSERS[browser_type](url=url)
        except pydantic.ValidationError as error:
            raise click.BadParameter(str(error), param_hint="--url") from error

    try:
        changesets = git_scm.changelog.parse_file(path, author_or_committer=author_or_committer)
    except git_scm.changelog.ChangelogError as error:
        raise click.ClickException(str(error)) from error

    for changeset in changesets:
        print(f"{changeset.id} {changeset.author_name} <{changeset.author_email}>")
        print(f"    {changeset.title}")
        if browser is not None:
            print(f"    {browser.changeset_link(changeset)}")
        for changed in changeset.paths:
            link = browser.file_link(changed) if browser is not None else ""
            print(f"  {changed.edit_type.value:<6} {changed.path} {link}".rstrip())
