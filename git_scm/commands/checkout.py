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

import typing

import click
import inflect
import structlog

import git_scm.client
import git_scm.config
import git_scm.scm

p = inflect.engine()

logger = structlog.get_logger(logger_name=__name__)


def log_changesets(scm: git_scm.scm.GitSCM, changesets: typing.Sequence) -> None:
    logger.info(f"Found {p.no('change set', len(changesets))}")
    for changeset in changesets:
        logger.info(
            changeset.title,
            commit=changeset.id,
            author=changeset.author_name,
            paths=len(changeset.paths),
        )
        for name, link in scm.links(changeset).items():
            logger.info("Link", name=name, url=link)


@click.command(name="checkout")
@click.argument(
    "jobs",
    metavar="JOB...",
    type=click.STRING,
    nargs=-1,
    required=True,
)
@click.option(
    "-n",
    "--build-number",
    "number",
    type=click.INT,
    default=1,
    show_default=True,
    help="Build number exposed to the job environment as $BUILD_NUMBER.",
)
@click.pass_obj
def main(config: git_scm.config.Config, jobs: typing.Sequence[str], number: int) -> None:
    """Check out configured jobs into the workspace path."""
    for name in jobs:
        scm = config.job(name)
        build = config.build(name, number)
        try:
            changesets = scm.checkout(build, config.client(name))
        except git_scm.client.GitException as error:
            raise click.ClickException(f"Checkout of {name!r} failed: {error}") from error
        log_changesets(scm, changesets)
