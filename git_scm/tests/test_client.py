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

import git
import pytest
import structlog.testing

import git_scm.client
import git_scm.scm
from git_scm.client import GitClient, GitClientType, GitException, RefSpec, RemoteConfig
from git_scm.environment import Build, Node
from git_scm.extensions.clone import CloneOption

ACTOR = git.Actor("A U Thor", "author@example.com")


def commit(repo: git.Repo, name: str, content: str, message: str) -> git.Commit:
    pathlib.Path(repo.working_tree_dir, name).write_text(content)
    repo.index.add([name])
    return repo.index.commit(message, author=ACTOR, committer=ACTOR)


@pytest.fixture()
def upstream(tmp_path: pathlib.Path) -> git.Repo:
    repo = git.Repo.init(tmp_path / "upstream", initial_branch="master")
    commit(repo, "README", "first\n", "Add README")
    repo.create_tag("v1.0")
    commit(repo, "README", "second\n", "Update README")
    repo.create_head("feature")
    return repo


@pytest.fixture()
def build(tmp_path: pathlib.Path) -> Build:
    return Build(
        job="example",
        number=1,
        workspace=tmp_path / "workspace",
        node=Node(
            inherit_environment=False,
            environment={"UPSTREAM": (tmp_path / "upstream").as_posix()},
        ),
    )


def scm_for(upstream: git.Repo, *extensions, refspecs=()) -> git_scm.scm.GitSCM:
    url = pathlib.Path(upstream.working_tree_dir).as_uri()
    return git_scm.scm.GitSCM(
        remotes=[RemoteConfig(url=url, refspecs=list(refspecs))],
        extensions=list(extensions),
    )


@pytest.mark.parametrize(
    "spec,expected",
    [
        (
            "+refs/heads/*:refs/remotes/origin/*",
            RefSpec("refs/heads/*", "refs/remotes/origin/*", True),
        ),
        (
            "refs/heads/master:refs/remotes/origin/master",
            RefSpec("refs/heads/master", "refs/remotes/origin/master"),
        ),
        ("refs/tags/v1.0", RefSpec("refs/tags/v1.0")),
    ],
)
def test_refspec_parse(spec: str, expected: RefSpec) -> None:
    assert RefSpec.parse(spec) == expected
    assert str(expected) == spec


def test_refspec_empty() -> None:
    with pytest.raises(ValueError):
        RefSpec.parse("+")


def test_remote_config_default_refspec() -> None:
    remote = RemoteConfig(name="upstream", url="https://git.invalid/repo.git")
    assert remote.fetch_refspecs() == [RefSpec("refs/heads/*", "refs/remotes/upstream/*", True)]


@pytest.mark.parametrize(
    "first,second,expected",
    [
        (GitClientType.ANY, GitClientType.ANY, GitClientType.ANY),
        (GitClientType.ANY, GitClientType.GITCLI, GitClientType.GITCLI),
        (GitClientType.GITCLI, GitClientType.ANY, GitClientType.GITCLI),
        (GitClientType.JGIT, GitClientType.JGIT, GitClientType.JGIT),
    ],
)
def test_client_type_combine(first, second, expected) -> None:
    assert first.combine(second) == expected


def test_client_type_conflict() -> None:
    with pytest.raises(GitException):
        GitClientType.GITCLI.combine(GitClientType.JGIT)


def test_fetch_arguments(tmp_path: pathlib.Path) -> None:
    refspecs = [RefSpec.parse("+refs/heads/*:refs/remotes/origin/*")]
    fetch = GitClient(tmp_path).fetch_command().from_("origin", refspecs)
    assert fetch.arguments() == ["--tags", "origin", "+refs/heads/*:refs/remotes/origin/*"]

    fetch.shallow(True).depth(3).tags(False).prune()
    assert fetch.arguments() == [
        "--no-tags",
        "--depth=3",
        "--prune",
        "origin",
        "+refs/heads/*:refs/remotes/origin/*",
    ]


def test_fetch_requires_remote(tmp_path: pathlib.Path) -> None:
    with pytest.raises(GitException):
        GitClient(tmp_path).fetch_command().arguments()


def test_timeout_seconds() -> None:
    assert git_scm.client.timeout_seconds(None) == 600
    assert git_scm.client.timeout_seconds(2) == 120


def test_checkout(upstream: git.Repo, build: Build) -> None:
    client = GitClient(build.workspace)

    assert scm_for(upstream).checkout(build, client) == []
    assert client.head_revision() == upstream.heads.master.commit.hexsha
    assert "v1.0" in [tag.name for tag in client.repo.tags]
    assert "origin/feature" in [ref.name for ref in client.repo.remotes.origin.refs]
    assert not (build.workspace / ".git" / "shallow").exists()


def test_checkout_changelog(upstream: git.Repo, build: Build) -> None:
    scm = scm_for(upstream)
    client = GitClient(build.workspace)
    scm.checkout(build, client)

    new = commit(upstream, "CHANGES", "changes\n", "Add CHANGES")
    (changeset,) = scm.checkout(build, client)

    assert changeset.id == new.hexsha
    assert changeset.title == "Add CHANGES"
    assert changeset.author_name == "A U Thor"
    assert [path.path for path in changeset.paths] == ["CHANGES"]
    assert client.head_revision() == new.hexsha


def test_checkout_shallow_without_tags(upstream: git.Repo, build: Build) -> None:
    client = GitClient(build.workspace)
    scm_for(upstream, CloneOption(True, True, None, None)).checkout(build, client)

    assert (build.workspace / ".git" / "shallow").exists()
    assert len(list(client.repo.iter_commits("HEAD"))) == 1
    assert client.repo.tags == []


def test_checkout_honor_refspec(upstream: git.Repo, build: Build) -> None:
    option = CloneOption(False, None, None)
    option.honor_refspec = True
    client = GitClient(build.workspace)
    refspec = "+refs/heads/master:refs/remotes/origin/master"

    scm_for(upstream, option, refspecs=[refspec]).checkout(build, client)

    assert client.repo.git.config("--get-all", "remote.origin.fetch") == refspec
    assert [ref.name for ref in client.repo.remotes.origin.refs] == ["origin/master"]


def test_checkout_without_honor_refspec(upstream: git.Repo, build: Build) -> None:
    client = GitClient(build.workspace)
    refspec = "+refs/heads/master:refs/remotes/origin/master"

    scm_for(upstream, CloneOption(False, None, None), refspecs=[refspec]).checkout(build, client)

    assert "origin/feature" in [ref.name for ref in client.repo.remotes.origin.refs]


def test_checkout_reference(upstream: git.Repo, build: Build) -> None:
    client = GitClient(build.workspace)
    scm_for(upstream, CloneOption(False, "$UPSTREAM", None)).checkout(build, client)

    alternates = build.workspace / ".git" / "objects" / "info" / "alternates"
    objects = pathlib.Path(upstream.git_dir, "objects").resolve()
    assert alternates.read_text().strip() == objects.as_posix()


@pytest.mark.parametrize(
    "reference,event",
    [
        ("missing", "Reference path does not exist"),
        ("file", "Reference path is not a directory"),
        ("empty", "Reference path does not contain an objects directory (not a git repo?)"),
    ],
)
def test_checkout_unusable_reference(
    tmp_path: pathlib.Path,
    upstream: git.Repo,
    build: Build,
    reference: str,
    event: str,
) -> None:
    (tmp_path / "file").write_text("")
    (tmp_path / "empty").mkdir()
    client = GitClient(build.workspace)

    with structlog.testing.capture_logs() as logs:
        option = CloneOption(False, (tmp_path / reference).as_posix(), None)
        scm_for(upstream, option).checkout(build, client)

    assert event in [log["event"] for log in logs]
    assert not (build.workspace / ".git" / "objects" / "info" / "alternates").exists()
    assert client.head_revision() == upstream.heads.master.commit.hexsha


def test_checkout_missing_branch(upstream: git.Repo, build: Build) -> None:
    scm = scm_for(upstream)
    scm = scm.model_copy(update={"branch": "missing"})

    with pytest.raises(GitException):
        scm.checkout(build, GitClient(build.workspace))


@pytest.fixture()
def fork(tmp_path: pathlib.Path, upstream: git.Repo) -> git.Repo:
    repo = upstream.clone(tmp_path / "fork")
    repo.create_head("topic").checkout()
    commit(repo, "TOPIC", "topic\n", "Add TOPIC")
    return repo


def test_checkout_fetches_every_remote(upstream: git.Repo, fork: git.Repo, build: Build) -> None:
    scm = git_scm.scm.GitSCM(
        remotes=[
            RemoteConfig(url=pathlib.Path(upstream.working_tree_dir).as_uri()),
            RemoteConfig(name="fork", url=pathlib.Path(fork.working_tree_dir).as_uri()),
        ]
    )
    client = GitClient(build.workspace)

    scm.checkout(build, client)

    assert client.head_revision() == upstream.heads.master.commit.hexsha
    assert client.resolve("fork/topic") == fork.heads.topic.commit.hexsha


def test_checkout_adds_and_updates_remotes(
    upstream: git.Repo,
    fork: git.Repo,
    build: Build,
) -> None:
    client = GitClient(build.workspace)
    scm_for(upstream).checkout(build, client)

    fork_url = pathlib.Path(fork.working_tree_dir).as_uri()
    scm = git_scm.scm.GitSCM(
        remotes=[
            RemoteConfig(url=fork_url),
            RemoteConfig(name="fork", url=fork_url),
        ]
    )
    scm.checkout(build, client)

    assert list(client.repo.remote("origin").urls) == [fork_url]
    assert list(client.repo.remote("fork").urls) == [fork_url]
    assert client.resolve("fork/topic") == fork.heads.topic.commit.hexsha


def test_failed_clone_is_removed(tmp_path: pathlib.Path, upstream: git.Repo, build: Build) -> None:
    client = GitClient(build.workspace)
    broken = git_scm.scm.GitSCM(remotes=[RemoteConfig(url=(tmp_path / "missing").as_uri())])

    with pytest.raises(GitException):
        broken.checkout(build, client)

    assert not client.has_repository()

    scm_for(upstream, CloneOption(True, None, None)).checkout(build, client)

    assert (build.workspace / ".git" / "shallow").exists()
    assert list(client.repo.remote("origin").urls) == [
        pathlib.Path(upstream.working_tree_dir).as_uri()
    ]
