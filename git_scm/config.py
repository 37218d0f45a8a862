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

import json
import logging
import logging.handlers
import os
import pathlib
import typing

import appdirs
import click
import giturlparse
import pydantic
import pydantic_settings
import structlog

import git_scm
from git_scm.client import GitClient
from git_scm.environment import Build, Node
from git_scm.scm import GitSCM

logger = structlog.get_logger(logger_name=__name__)

CONFIG_DIRECTORY = pathlib.Path(appdirs.user_config_dir(git_scm.__app__))
CACHE_DIRECTORY = pathlib.Path(appdirs.user_cache_dir(git_scm.__app__))
CONFIG_PATH = CONFIG_DIRECTORY / "config.json"


class ConfigFileSettingsSource(pydantic_settings.PydanticBaseSettingsSource):
    """Lowest priority settings, read from the JSON config file if it exists."""

    def get_field_value(
        self,
        field: pydantic.fields.FieldInfo,
        field_name: str,
    ) -> typing.Tuple[typing.Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> typing.Dict[str, typing.Any]:
        if not CONFIG_PATH.exists():
            logger.debug("No config file exists", path=CONFIG_PATH.as_posix())
            return {}

        logger.debug("Parsing config file", path=CONFIG_PATH.as_posix())
        return json.loads(CONFIG_PATH.read_text())


class Config(pydantic_settings.BaseSettings):
    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix="GIT_SCM_",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    workspace: typing.Optional[pathlib.Path] = pydantic.Field(default=None)
    node: Node = pydantic.Field(default_factory=Node)
    jobs: typing.Mapping[str, GitSCM] = pydantic.Field(default_factory=dict)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: typing.Type[pydantic_settings.BaseSettings],
        init_settings: pydantic_settings.PydanticBaseSettingsSource,
        env_settings: pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: pydantic_settings.PydanticBaseSettingsSource,
    ) -> typing.Tuple[pydantic_settings.PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            file_secret_settings,
            ConfigFileSettingsSource(settings_cls),
        )

    def workspace_path(self) -> pathlib.Path:
        if self.workspace is None:
            raise click.UsageError(
                "Workspace is not configured - set 'workspace' in {config_path} or set the "
                "'GIT_SCM_WORKSPACE' environment variable".format(config_path=CONFIG_PATH)
            )

        return self.workspace

    def job(self, name: str) -> GitSCM:
        try:
            return self.jobs[name]
        except KeyError as error:
            raise click.UsageError(f"No job named {name!r} is configured") from error

    def client(self, name: str) -> GitClient:
        return GitClient(self.workspace_path() / name)

    def build(self, name: str, number: int) -> Build:
        return Build(
            job=name,
            number=number,
            workspace=self.workspace_path() / name,
            node=self.node,
            variables=self.job(name).variables,
        )


def configure_logging() -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(sort_keys=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(),
    )

    CACHE_DIRECTORY.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=str(CACHE_DIRECTORY / "debug.log"),
        maxBytes=1024 * 1024,
    )
    handler.setFormatter(logging.Formatter("{asctime}:{levelname}:{name}:{message}", style="{"))
    logging.getLogger().addHandler(handler)
    logging.getLogger().setLevel(logging.DEBUG)


def repository_path(workspace: pathlib.Path, url: str) -> pathlib.Path:
    """Derive a work tree path for a URL, e.g. '<workspace>/<domain>/<group>/<name>'."""
    parsed = giturlparse.parse(url)
    project, _ = os.path.splitext(parsed.pathname.removeprefix("/"))
    path = workspace.joinpath(parsed.domain, project)

    logger.debug(
        "Parsed repository path from URL",
        url=url,
        path=path.as_posix(),
        domain=parsed.domain,
        project=project,
    )

    if pathlib.Path(project).is_absolute():
        raise click.UsageError(f"Failed to parse repository url safely ({project=})")

    return path
