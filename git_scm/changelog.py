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

import dataclasses
import datetime
import enum
import pathlib
import re
import typing

import structlog

logger = structlog.get_logger(logger_name=__name__)

NULL_ID = "0" * 40

COMMIT_PATTERN = re.compile(r"^commit ([0-9a-f]{40})")
PERSON_PATTERN = re.compile(r"^(author|committer) (.*?) <(.*)> (\d+) ([+-]\d{4})$")
PATH_PATTERN = re.compile(
    r"^:(\d{6}) (\d{6}) ([0-9a-f]{40}) ([0-9a-f]{40}) ([ACDMRTUX])\d*\t(.*)$"
)


class ChangelogError(ValueError):
    pass


class EditType(enum.Enum):
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


def parse_id(value: str) -> typing.Optional[str]:
    """The all-zero object id marks a missing side of a raw diff line."""
    return None if value == NULL_ID else value


def parse_timestamp(seconds: str, offset: str) -> datetime.datetime:
    sign = -1 if offset.startswith("-") else 1
    delta = datetime.timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5]))
    tz = datetime.timezone(sign * delta)
    return datetime.datetime.fromtimestamp(int(seconds), tz=tz)


@dataclasses.dataclass(frozen=True)
class Person:
    name: str
    email: str
    time: datetime.datetime


@dataclasses.dataclass()
class Path:
    src: typing.Optional[str]
    dst: typing.Optional[str]
    action: str
    path: str
    changeset: ChangeSet = dataclasses.field(repr=False, compare=False)

    def __str__(self) -> str:
        return self.path

    @property
    def edit_type(self) -> EditType:
        if self.action in ("A", "C"):
            return EditType.ADD
        if self.action == "D":
            return EditType.DELETE
        return EditType.EDIT


@dataclasses.dataclass()
class ChangeSet:
    id: str
    tree: typing.Optional[str] = None
    parents: typing.List[str] = dataclasses.field(default_factory=list)
    author: typing.Optional[Person] = None
    committer: typing.Optional[Person] = None
    lines: typing.List[str] = dataclasses.field(default_factory=list, repr=False)
    paths: typing.List[Path] = dataclasses.field(default_factory=list, repr=False)
    author_or_committer: bool = dataclasses.field(default=False, repr=False)

    def __str__(self) -> str:
        return self.id

    @property
    def parent_commit(self) -> typing.Optional[str]:
        return self.parents[0] if self.parents else None

    @property
    def comment(self) -> str:
        return "\n".join(self.lines).strip("\n")

    @property
    def title(self) -> str:
        lines = self.comment.splitlines()
        return lines[0] if lines else ""

    @property
    def person(self) -> typing.Optional[Person]:
        """The committer when 'author_or_committer' is set, otherwise the author."""
        return self.committer if self.author_or_committer else self.author

    @property
    def author_name(self) -> typing.Optional[str]:
        return self.person.name if self.person else None

    @property
    def author_email(self) -> typing.Optional[str]:
        return self.person.email if self.person else None

    @property
    def timestamp(self) -> typing.Optional[datetime.datetime]:
        return self.person.time if self.person else None

    def sorted_paths(self) -> typing.List[Path]:
        return sorted(self.paths, key=lambda p: p.path)

    def parse_line(self, line: str) -> None:
        if line.startswith("    "):
            self.lines.append(line[4:])
        elif line.startswith("tree "):
            self.tree = line.split()[1]
        elif line.startswith("parent "):
            self.parents.append(line.split()[1])
        elif match := PERSON_PATTERN.match(line):
            role, name, email, seconds, offset = match.groups()
            person = Person(name=name, email=email, time=parse_timestamp(seconds, offset))
            if role == "author":
                self.author = person
            else:
                self.committer = person
        elif match := PATH_PATTERN.match(line):
            _, _, src, dst, action, names = match.groups()
            self.paths.append(
                Path(
                    src=parse_id(src),
                    dst=parse_id(dst),
                    action=action,
                    path=names.split("\t")[-1],
                    changeset=self,
                )
            )
        elif line == "" and self.lines:
            self.lines.append("")


def parse(text: str, author_or_committer: bool = False) -> typing.List[ChangeSet]:
    """Parse the output of 'git log --raw --no-abbrev -M --format=raw'."""
    changesets: typing.List[ChangeSet] = []
    current: typing.Optional[ChangeSet] = None

    for line in text.splitlines():
        if match := COMMIT_PATTERN.match(line):
            current = ChangeSet(id=match.group(1), author_or_committer=author_or_committer)
            changesets.append(current)
            continue

        if current is None:
            if PATH_PATTERN.match(line):
                raise ChangelogError(f"Found a changed path before any commit: {line!r}")
            continue

        current.parse_line(line)

    logger.debug("Parsed changelog", changesets=len(changesets))
    return changesets


def parse_file(path: pathlib.Path, author_or_committer: bool = False) -> typing.List[ChangeSet]:
    return parse(path.read_text(encoding="utf-8"), author_or_committer=author_or_committer)
