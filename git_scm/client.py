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
import enum
import pathlib
import shutil
import typing

import git
import pydantic
import structlog

logger = structlog.get_logger(logger_name=__name__)

# Minutes a git command may run before it is killed.
DEFAULT_TIMEOUT = 10


class GitException(Exception):
    pass


class GitClientType(enum.Enum):
    ANY = "any"
    GITCLI = "gitcli"
    JGIT = "jgit"

    def combine(self, other: GitClientType) -> GitClientType:
        if self == GitClientType.ANY:
            return other
        if other == GitClientType.ANY or other == self:
            return self

        raise GitException(
            f"Extensions require conflicting git implementations ({self} and {other})"
        )


@dataclasses.dataclass(frozen=True)
class RefSpec:
    src: str
    dst: typing.Optional[str] = None
    force: bool = False

    def __str__(self) -> str:
        spec = self.src if self.dst is None else f"{self.src}:{self.dst}"
        return f"+{spec}" if self.force else spec

    @classmethod
    def parse(cls, spec: str) -> RefSpec:
        force = spec.startswith("+")
        spec = spec.removeprefix("+")
        if not spec:
            raise ValueError("Refspec must not be empty")

        src, sep, dst = spec.partition(":")
        return cls(src=src, dst=dst if sep else None, force=force)


def default_refspec(name: str) -> str:
    return f"+refs/heads/*:refs/remotes/{name}/*"


class RemoteConfig(pydantic.BaseModel):
    name: str = pydantic.Field(default="origin")
    url: str
    refspecs: typing.Sequence[str] = pydantic.Field(default_factory=list)

    def __str__(self) -> str:
        return self.name

    @pydantic.field_validator("refspecs")
    @classmethod
    def refspecs_must_parse(cls, value: typing.Sequence[str]) -> typing.Sequence[str]:
        for spec in value:
            RefSpec.parse(spec)
        return value

    def fetch_refspecs(self) -> typing.List[RefSpec]:
        specs = self.refspecs or [default_refspec(self.name)]
        return [RefSpec.parse(spec) for spec in specs]


def timeout_seconds(timeout: typing.Optional[int]) -> int:
    return (DEFAULT_TIMEOUT if timeout is None else timeout) * 60


class GitClient:
    """Runs git commands against a single work tree."""

    def __init__(self, work_tree: pathlib.Path) -> None:
        self.work_tree = work_tree
        self._repo: typing.Optional[git.Repo] = None

    def __repr__(self) -> str:
        return f"GitClient(work_tree={self.work_tree!r})"

    def bind(self, log: structlog.stdlib.BoundLogger) -> structlog.stdlib.BoundLogger:
        return log.bind(path=self.work_tree.as_posix())

    @property
    def repo(self) -> git.Repo:
        if self._repo is None:
            self._repo = git.Repo(self.work_tree.as_posix())
        return self._repo

    def init(self) -> git.Repo:
        self.work_tree.mkdir(parents=True, exist_ok=True)
        self._repo = git.Repo.init(self.work_tree.as_posix())
        return self._repo

    def has_repository(self) -> bool:
        return (self.work_tree / ".git").exists()

    def head_revision(self) -> typing.Optional[str]:
        try:
            return self.repo.head.commit.hexsha
        except ValueError:
            # Freshly initialised repositories have no commit behind HEAD.
            return None

    def configure_remote(self, name: str, url: str) -> None:
        """Create a remote, or point an existing one at a new URL."""
        log = self.bind(logger).bind(remote=name, url=url)

        try:
            remote = self.repo.remote(name)
        except ValueError:
            log.info("Creating remote")
            self.run("remote", "add", name, url)
            return

        if set(remote.urls) != {url}:
            log.warning("Updating remote", old=set(remote.urls))
            self.run("remote", "set-url", name, url)

    def remove_repository(self) -> None:
        self._repo = None
        shutil.rmtree(self.work_tree / ".git")

    def resolve(self, ref: str) -> str:
        return self.run("rev-parse", "--verify", f"{ref}^{{commit}}").strip()

    def raw_changelog(self, since: str, until: str) -> str:
        return self.run("log", "--raw", "--no-abbrev", "-M", "--format=raw", f"{since}..{until}")

    def run(self, command: str, *args: str, timeout: typing.Optional[int] = None) -> str:
        self.bind(logger).debug("Running git", command=command, args=args)
        try:
            return self.repo.git._call_process(
                command,
                *args,
                kill_after_timeout=timeout_seconds(timeout),
            )
        except git.GitCommandError as error:
            raise GitException(f"Command 'git {command}' failed: {error.stderr.strip()}") from error

    def clone_command(self) -> CloneCommand:
        return CloneCommand(self)

    def fetch_command(self) -> FetchCommand:
        return FetchCommand(self)

    def checkout_command(self) -> CheckoutCommand:
        return CheckoutCommand(self)


class CloneCommand:
    def __init__(self, client: GitClient) -> None:
        self.client = client
        self._url: typing.Optional[str] = None
        self._origin = "origin"
        self._shallow = False
        self._depth: typing.Optional[int] = None
        self._tags = True
        self._reference: typing.Optional[str] = None
        self._refspecs: typing.List[RefSpec] = []
        self._timeout: typing.Optional[int] = None

    def url(self, url: str) -> CloneCommand:
        self._url = url
        return self

    def repository_name(self, name: str) -> CloneCommand:
        self._origin = name
        return self

    def shallow(self, shallow: bool = True) -> CloneCommand:
        self._shallow = shallow
        return self

    def depth(self, depth: typing.Optional[int]) -> CloneCommand:
        self._depth = depth
        return self

    def tags(self, tags: bool) -> CloneCommand:
        self._tags = tags
        return self

    def reference(self, reference: typing.Optional[str]) -> CloneCommand:
        self._reference = reference
        return self

    def refspecs(self, refspecs: typing.Iterable[RefSpec]) -> CloneCommand:
        self._refspecs = list(refspecs)
        return self

    def timeout(self, timeout: typing.Optional[int]) -> CloneCommand:
        self._timeout = timeout
        return self

    def execute(self) -> None:
        if self._url is None:
            raise GitException("No URL set for clone")

        log = self.client.bind(logger).bind(url=self._url, remote=self._origin)
        log.info("Cloning repository")

        self.client.init()
        try:
            self.initial_fetch()
        except GitException:
            # A half-initialised repository would be mistaken for a clone on the next run.
            log.warning("Removing failed clone")
            self.client.remove_repository()
            raise

    def initial_fetch(self) -> None:
        self.client.run("remote", "add", self._origin, self._url)

        refspecs = self._refspecs or [RefSpec.parse(default_refspec(self._origin))]
        key = f"remote.{self._origin}.fetch"
        self.client.run("config", "--replace-all", key, str(refspecs[0]))
        for refspec in refspecs[1:]:
            self.client.run("config", "--add", key, str(refspec))

        self.add_alternate()

        (
            FetchCommand(self.client)
            .from_(self._origin, refspecs)
            .shallow(self._shallow)
            .depth(self._depth)
            .tags(self._tags)
            .timeout(self._timeout)
            .execute()
        )

    def add_alternate(self) -> None:
        """Borrow objects from a local reference repository if one is usable."""
        if not self._reference:
            return

        log = self.client.bind(logger).bind(reference=self._reference)
        reference = pathlib.Path(self._reference)
        if not reference.exists():
            log.warning("Reference path does not exist")
            return

        if not reference.is_dir():
            log.warning("Reference path is not a directory")
            return

        objects = reference / ".git" / "objects"
        if not objects.is_dir():
            objects = reference / "objects"
        if not objects.is_dir():
            log.warning("Reference path does not contain an objects directory (not a git repo?)")
            return

        log.info("Using reference repository", objects=objects.as_posix())
        alternates = self.client.work_tree / ".git" / "objects" / "info" / "alternates"
        alternates.parent.mkdir(parents=True, exist_ok=True)
        alternates.write_text(objects.resolve().as_posix() + "\n")


class FetchCommand:
    def __init__(self, client: GitClient) -> None:
        self.client = client
        self._remote: typing.Optional[str] = None
        self._refspecs: typing.List[RefSpec] = []
        self._prune = False
        self._shallow = False
        self._depth: typing.Optional[int] = None
        self._tags = True
        self._timeout: typing.Optional[int] = None

    def from_(self, remote: str, refspecs: typing.Iterable[RefSpec]) -> FetchCommand:
        self._remote = remote
        self._refspecs = list(refspecs)
        return self

    def prune(self, prune: bool = True) -> FetchCommand:
        self._prune = prune
        return self

    def shallow(self, shallow: bool = True) -> FetchCommand:
        self._shallow = shallow
        return self

    def depth(self, depth: typing.Optional[int]) -> FetchCommand:
        self._depth = depth
        return self

    def tags(self, tags: bool) -> FetchCommand:
        self._tags = tags
        return self

    def timeout(self, timeout: typing.Optional[int]) -> FetchCommand:
        self._timeout = timeout
        return self

    def arguments(self) -> typing.List[str]:
        if self._remote is None:
            raise GitException("No remote set for fetch")

        args = ["--tags" if self._tags else "--no-tags"]
        if self._shallow:
            args.append(f"--depth={self._depth or 1}")
        if self._prune:
            args.append("--prune")
        args.append(self._remote)
        args.extend(str(refspec) for refspec in self._refspecs)
        return args

    def execute(self) -> None:
        args = self.arguments()
        self.client.bind(logger).info("Fetching remote", remote=self._remote, args=args)
        self.client.run("fetch", *args, timeout=self._timeout)


class CheckoutCommand:
    def __init__(self, client: GitClient) -> None:
        self.client = client
        self._ref: typing.Optional[str] = None
        self._timeout: typing.Optional[int] = None

    def ref(self, ref: str) -> CheckoutCommand:
        self._ref = ref
        return self

    def timeout(self, timeout: typing.Optional[int]) -> CheckoutCommand:
        self._timeout = timeout
        return self

    def execute(self) -> None:
        if self._ref is None:
            raise GitException("No ref set for checkout")

        self.client.bind(logger).info("Checking out revision", ref=self._ref)
        self.client.run("checkout", "--force", "--detach", self._ref, timeout=self._timeout)
