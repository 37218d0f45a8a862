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

import functools
import typing

import pydantic
import structlog

import git_scm.browser
import git_scm.changelog
from git_scm.client import GitClient, GitClientType, RemoteConfig
from git_scm.environment import Build
from git_scm.extensions.clone import CheckoutOption, CloneOption

logger = structlog.get_logger(logger_name=__name__)

Extension = typing.Annotated[
    typing.Union[CloneOption, CheckoutOption],
    pydantic.Field(discriminator="type"),
]


class GitSCM(pydantic.BaseModel):
    remotes: typing.Sequence[RemoteConfig] = pydantic.Field(min_length=1)
    branch: str = pydantic.Field(default="master")
    extensions: typing.Sequence[Extension] = pydantic.Field(default_factory=list)
    browser: typing.Optional[git_scm.browser.Browser] = pydantic.Field(default=None)
    variables: typing.Mapping[str, str] = pydantic.Field(default_factory=dict)

    def __str__(self) -> str:
        return self.remotes[0].url

    def required_client(self) -> GitClientType:
        return functools.reduce(
            lambda required, extension: required.combine(extension.required_client),
            self.extensions,
            GitClientType.ANY,
        )

    def checkout(self, build: Build, git: GitClient) -> typing.List[git_scm.changelog.ChangeSet]:
        """
        Clone (if needed), fetch every remote and check out the configured branch.

        Returns the change sets between the previously checked out revision and
        the new one, which is empty for a fresh clone.
        """
        log = git.bind(build.bind(logger))
        log.debug("Using git client", client=self.required_client().value)

        previous = None
        if git.has_repository():
            previous = git.head_revision()
        else:
            remote = self.remotes[0]
            clone = git.clone_command().url(remote.url).repository_name(remote.name)
            for extension in self.extensions:
                extension.decorate_clone_command(self, build, git, clone)
            clone.execute()

        for remote in self.remotes:
            git.configure_remote(remote.name, remote.url)
            fetch = git.fetch_command().from_(remote.name, remote.fetch_refspecs())
            for extension in self.extensions:
                extension.decorate_fetch_command(self, git, fetch)
            fetch.execute()

        revision = git.resolve(f"{self.remotes[0].name}/{self.branch}")

        checkout = git.checkout_command().ref(revision)
        for extension in self.extensions:
            extension.decorate_checkout_command(self, build, git, checkout)
        checkout.execute()

        log.info("Checked out revision", branch=self.branch, revision=revision, previous=previous)

        if previous is None or previous == revision:
            return []

        return git_scm.changelog.parse(git.raw_changelog(previous, revision))

    def links(
        self,
        changeset: git_scm.changelog.ChangeSet,
    ) -> typing.Dict[str, typing.Optional[str]]:
        if self.browser is None:
            return {}

        return git_scm.browser.links(self.browser, changeset)
