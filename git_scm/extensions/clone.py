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
import structlog

from git_scm.client import CheckoutCommand, CloneCommand, FetchCommand, GitClient, GitClientType
from git_scm.environment import Build
from git_scm.extensions import GitSCMExtension

if typing.TYPE_CHECKING:
    from git_scm.scm import GitSCM

logger = structlog.get_logger(logger_name=__name__)


def used_depth(depth: typing.Optional[int]) -> int:
    return 1 if depth is None or depth < 1 else depth


class CloneOption(GitSCMExtension):
    type: typing.Literal["clone"] = "clone"

    shallow: bool = pydantic.Field(default=False)
    no_tags: bool = pydantic.Field(default=False)
    reference: typing.Optional[str] = pydantic.Field(default=None)
    timeout: typing.Optional[int] = pydantic.Field(default=None)
    depth: typing.Optional[int] = pydantic.Field(default=None)

    # Whether the initial clone fetches only the first remote's refspecs. When
    # unset every branch is fetched on clone and the refspecs apply to later
    # fetches only, which some tooling relies on.
    honor_refspec: bool = pydantic.Field(default=False)

    display_name: typing.ClassVar[str] = "Advanced clone behaviours"

    def __init__(self, *args: typing.Any, **kwargs: typing.Any) -> None:
        """
        Accepts 'CloneOption(shallow, reference, timeout)' and
        'CloneOption(shallow, no_tags, reference, timeout)' as well as keywords.
        """
        if len(args) == 3:
            kwargs.update(zip(("shallow", "reference", "timeout"), args))
        elif len(args) == 4:
            kwargs.update(zip(("shallow", "no_tags", "reference", "timeout"), args))
        elif args:
            raise TypeError(f"CloneOption takes 3 or 4 positional arguments ({len(args)} given)")
        super().__init__(**kwargs)

    def __str__(self) -> str:
        return (
            f"CloneOption{{shallow={self.shallow}, noTags={self.no_tags}, "
            f"reference='{self.reference}', timeout={self.timeout}, depth={self.depth}, "
            f"honorRefspec={self.honor_refspec}}}"
        )

    def key(self) -> typing.Tuple[typing.Any, ...]:
        return (
            self.shallow,
            self.no_tags,
            self.depth,
            self.honor_refspec,
            self.reference,
            self.timeout,
        )

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    @property
    def required_client(self) -> GitClientType:
        return GitClientType.GITCLI

    def decorate_clone_command(
        self,
        scm: GitSCM,
        build: Build,
        git: GitClient,
        cmd: CloneCommand,
    ) -> None:
        log = build.bind(logger)

        cmd.shallow(self.shallow)
        if self.shallow:
            depth = used_depth(self.depth)
            log.info("Using shallow clone", depth=depth)
            cmd.depth(depth)

        if self.no_tags:
            log.info("Avoid fetching tags")
            cmd.tags(False)

        if self.honor_refspec:
            log.info("Honoring refspec on initial clone")
            # Only a single repository per job is supported, so the first remote is authoritative.
            cmd.refspecs(scm.remotes[0].fetch_refspecs())

        cmd.timeout(self.timeout)

        env = build.environment()
        env.update(build.node.computer_environment())
        for node_property in build.node.properties:
            node_property.build_env_vars(env)

        cmd.reference(env.expand(self.reference))

    def decorate_fetch_command(self, scm: GitSCM, git: GitClient, cmd: FetchCommand) -> None:
        cmd.shallow(self.shallow)
        if self.shallow:
            depth = used_depth(self.depth)
            git.bind(logger).info("Using shallow fetch", depth=depth)
            cmd.depth(depth)

        cmd.tags(not self.no_tags)
        # Fetch commands are always given their refspecs.
        cmd.timeout(self.timeout)


class CheckoutOption(GitSCMExtension):
    type: typing.Literal["checkout"] = "checkout"

    timeout: typing.Optional[int] = pydantic.Field(default=None)

    display_name: typing.ClassVar[str] = "Advanced checkout behaviours"

    def decorate_checkout_command(
        self,
        scm: GitSCM,
        build: Build,
        git: GitClient,
        cmd: CheckoutCommand,
    ) -> None:
        cmd.timeout(self.timeout)
