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
import structlog

import git_scm.client
import git_scm.commands.checkout
import git_scm.config
import git_scm.environment
import git_scm.extensions.clone
import git_scm.scm

logger = structlog.get_logger(logger_name=__name__)


@click.command(name="clone")
@click.argument("url", metavar="URL", type=click.STRING)
@click.argument(
    "path",
    required=False,
    type=click.Path(file_okay=False, dir_okay=True, path_type=pathlib.Path),
)
@click.option("-b", "--branch", "branch", default="master", show_default=True)
@click.option("-r", "--remote", "remote", default="origin", show_default=True)
@click.option("--shallow/--no-shallow", "shallow", default=False, help="Perform a shallow clone.")
@click.option("--depth", "depth", type=click.INT, default=None, help="Shallow clone depth.")
@click.option("--no-tags", "no_tags", is_flag=True, default=False, help="Do not fetch tags.")
@click.option(
    "--reference",
    "reference",
    type=click.STRING,
    default=None,
    help="Local repository to borrow objects from, may contain $VARIABLES.",
)
@click.option(
    "--timeout",
    "timeout",
    type=click.INT,
    default=None,
    help="Minutes before git commands are killed (default 10).",
)
@click.option(
    "--honor-refspec",
    "honor_refspec",
    is_flag=True,
    default=False,
    help="Only fetch the given refspecs on the initial clone.",
)
@click.option("--refspec", "refspecs", multiple=True, metavar="REFSPEC")
@click.pass_obj
def main(
    config: git_scm.config.Config,
    url: str,
    path: typing.Optional[pathlib.Path],
    branch: str,
    remote: str,
    shallow: bool,
    depth: typing.Optional[int],
    no_tags: bool,
    reference: typing.Optional[str],
    timeout: typing.Optional[int],
    honor_refspec: bool,
    refspecs: typing.Sequence[str],
) -> None:
    """Clone a single repository using advanced clone behaviours."""
    if path is None:
        path = git_scm.config.repository_path(config.workspace_path(), url)

    try:
        scm = git_scm.scm.GitSCM(
            remotes=[git_scm.client.RemoteConfig(name=remote, url=url, refspecs=list(refspecs))],
            branch=branch,
            extensions=[
                git_scm.extensions.clone.CloneOption(
                    shallow=shallow,
                    no_tags=no_tags,
                    reference=reference,
                    timeout=timeout,
                    depth=depth,
                    honor_refspec=honor_refspec,
                )
            ],
        )
    except ValueError as error:
        raise click.UsageError(str(error)) from error

    build = git_scm.environment.Build(job=path.name, number=1, workspace=path, node=config.node)
    try:
        changesets = scm.checkout(build, git_scm.client.GitClient(path))
    except git_scm.client.GitException as error:
        raise click.ClickException(str(error)) from error
    git_scm.commands.checkout.log_changesets(scm, changesets)
