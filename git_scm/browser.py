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

import abc
import typing
import urllib.parse

import pydantic

from git_scm.changelog import ChangeSet, EditType, Path


class RepositoryBrowser(pydantic.BaseModel, abc.ABC):
    """Maps change sets and changed paths to pages of a repository web interface."""

    url: str

    def __str__(self) -> str:
        return self.url

    @pydantic.field_validator("url")
    @classmethod
    def url_must_be_absolute(cls, value: str) -> str:
        parts = urllib.parse.urlsplit(value)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Malformed repository browser URL {value!r}")

        return value.rstrip("/") + "/"

    def link(self, spec: str) -> str:
        return self.url + spec

    def query(self, *params: typing.Tuple[str, typing.Optional[str]]) -> str:
        """Build a query string link, leaving out parameters without a value."""
        present = [(key, value) for key, value in params if value is not None]
        return self.url + "?" + urllib.parse.urlencode(present, safe="/")

    @abc.abstractmethod
    def changeset_link(self, changeset: ChangeSet) -> typing.Optional[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def diff_link(self, path: Path) -> typing.Optional[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def file_link(self, path: Path) -> typing.Optional[str]:
        raise NotImplementedError


def has_diff(path: Path) -> bool:
    """Only edited paths with both blobs and a parent commit can be diffed."""
    return (
        path.edit_type == EditType.EDIT
        and path.src is not None
        and path.dst is not None
        and path.changeset.parent_commit is not None
    )


class RhodeCode(RepositoryBrowser):
    type: typing.Literal["rhodecode"] = "rhodecode"

    def changeset_link(self, changeset: ChangeSet) -> str:
        return self.link(f"files/{changeset.id}")

    def diff_link(self, path: Path) -> str:
        return self.link(
            f"files/{path.changeset.id}/diffs?diffmode=sidebyside&fragment=1#{path.path}"
        )

    def file_link(self, path: Path) -> str:
        if path.edit_type == EditType.DELETE:
            return self.diff_link(path)

        return self.link(f"files/{path.changeset.id}/{path.path}")


class GithubWeb(RepositoryBrowser):
    type: typing.Literal["githubweb"] = "githubweb"

    def changeset_link(self, changeset: ChangeSet) -> str:
        return self.link(f"commit/{changeset.id}")

    def diff_link(self, path: Path) -> typing.Optional[str]:
        if not has_diff(path):
            return None

        return self.diff_link_regardless_of_edit_type(path)

    def diff_link_regardless_of_edit_type(self, path: Path) -> str:
        index = [p.path for p in path.changeset.sorted_paths()].index(path.path)
        return self.link(f"commit/{path.changeset.id}#diff-{index}")

    def file_link(self, path: Path) -> str:
        if path.edit_type == EditType.DELETE:
            return self.diff_link_regardless_of_edit_type(path)

        return self.link(f"blob/{path.changeset.id}/{path.path}")


class GitLab(RepositoryBrowser):
    type: typing.Literal["gitlab"] = "gitlab"

    def changeset_link(self, changeset: ChangeSet) -> str:
        return self.link(f"commit/{changeset.id}")

    def diff_link(self, path: Path) -> str:
        return self.link(f"commit/{path.changeset.id}#{path.path}")

    def file_link(self, path: Path) -> str:
        if path.edit_type == EditType.DELETE:
            return self.diff_link(path)

        return self.link(f"blob/{path.changeset.id}/{path.path}")


class GitWeb(RepositoryBrowser):
    type: typing.Literal["gitweb"] = "gitweb"

    def changeset_link(self, changeset: ChangeSet) -> str:
        return self.query(("a", "commit"), ("h", changeset.id))

    def diff_link(self, path: Path) -> typing.Optional[str]:
        if not has_diff(path):
            return None

        return self.query(
            ("a", "blobdiff"),
            ("f", path.path),
            ("fp", path.path),
            ("h", path.dst),
            ("hp", path.src),
            ("hb", path.changeset.id),
            ("hpb", path.changeset.parent_commit),
        )

    def file_link(self, path: Path) -> str:
        if path.edit_type == EditType.DELETE:
            return self.query(
                ("a", "blob"),
                ("f", path.path),
                ("h", path.src),
                ("hb", path.changeset.parent_commit),
            )

        return self.query(
            ("a", "blob"),
            ("f", path.path),
            ("h", path.dst),
            ("hb", path.changeset.id),
        )


Browser = typing.Annotated[
    typing.Union[RhodeCode, GithubWeb, GitLab, GitWeb],
    pydantic.Field(discriminator="type"),
]

BROWSERS: typing.Mapping[str, typing.Type[RepositoryBrowser]] = {
    "rhodecode": RhodeCode,
    "githubweb": GithubWeb,
    "gitlab": GitLab,
    "gitweb": GitWeb,
}


def links(
    browser: RepositoryBrowser,
    changeset: ChangeSet,
) -> typing.Dict[str, typing.Optional[str]]:
    """Return the change set link followed by a file link for each changed path."""
    result = {changeset.id: browser.changeset_link(changeset)}
    for path in changeset.paths:
        result[path.path] = browser.file_link(path)
    return result
