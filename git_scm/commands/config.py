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

import git_scm.config

logger = structlog.get_logger(logger_name=__name__)


@click.group(name="config")
def main():
    """Inspect and create the job configuration file."""


@main.command(name="display")
@click.option(
    "-j",
    "--job",
    "job",
    type=click.STRING,
    default=None,
    help="Only show the configuration of a single job.",
)
@click.pass_obj
def display_config(config: git_scm.config.Config, job: typing.Optional[str]) -> None:
    """Dump the effective configuration (file, environment and defaults) as JSON."""
    if job is None:
        print(config.model_dump_json(indent=2))
    else:
        print(config.job(job).model_dump_json(indent=2))


@main.command(name="jobs")
@click.pass_obj
def list_jobs(config: git_scm.config.Config) -> None:
    """List configured jobs with their remotes and branch."""
    for name, scm in config.jobs.items():
        logger.info(
            "Configured job",
            job=name,
            branch=scm.branch,
            remotes=[f"{remote.name}={remote.url}" for remote in scm.remotes],
            browser=str(scm.browser) if scm.browser else None,
        )


@main.command(name="init")
@click.argument(
    "workspace",
    type=click.Path(file_okay=False, dir_okay=True, path_type=pathlib.Path),
)
@click.pass_obj
def init_config(config: git_scm.config.Config, workspace: pathlib.Path) -> None:
    """
    Write a config file whose jobs check out into WORKSPACE.

    The workspace directory is created if it is missing. Existing config files
    are never overwritten.
    """
    if git_scm.config.CONFIG_PATH.exists():
        raise click.UsageError(f"Config file {git_scm.config.CONFIG_PATH} already exists")

    workspace = workspace.expanduser().resolve()
    workspace.mkdir(parents=True, exist_ok=True)
    config.workspace = workspace

    git_scm.config.CONFIG_DIRECTORY.mkdir(parents=True, exist_ok=True)
    git_scm.config.CONFIG_PATH.write_text(config.model_dump_json(indent=2))
    logger.info(
        "Wrote config file",
        path=git_scm.config.CONFIG_PATH.as_posix(),
        workspace=workspace.as_posix(),
    )


@main.command(name="workspace")
@click.pass_obj
def display_workspace(config: git_scm.config.Config) -> None:
    """Print the directory jobs are checked out into."""
    print(config.workspace_path())
