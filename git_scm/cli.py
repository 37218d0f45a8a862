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

import click
import pydantic

import git_scm
import git_scm.commands
import git_scm.commands.changelog
import git_scm.commands.checkout
import git_scm.commands.clone
import git_scm.commands.config
import git_scm.config


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    git_scm.config.configure_logging()
    try:
        ctx.obj = git_scm.config.Config()
    except pydantic.ValidationError as error:
        raise click.UsageError(str(error)) from error


main.add_command(git_scm.commands.changelog.main)
main.add_command(git_scm.commands.checkout.main)
main.add_command(git_scm.commands.clone.main)
main.add_command(git_scm.commands.config.main)
