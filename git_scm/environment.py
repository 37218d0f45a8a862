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
import os
import pathlib
import re
import typing

import pydantic
import structlog

logger = structlog.get_logger(logger_name=__name__)

VARIABLE_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


class EnvVars(typing.Dict[str, str]):
    def expand(self, value: typing.Optional[str]) -> typing.Optional[str]:
        """Replace '$NAME' and '${NAME}' with known variables, leaving others untouched."""
        if value is None:
            return None

        def replace(match: re.Match) -> str:
            name = match.group(1) or match.group(2)
            return self.get(name, match.group(0))

        return VARIABLE_PATTERN.sub(replace, value)


class EnvironmentVariablesNodeProperty(pydantic.BaseModel):
    type: typing.Literal["environment"] = "environment"
    variables: typing.Mapping[str, str] = pydantic.Field(default_factory=dict)

    def build_env_vars(self, env: EnvVars) -> None:
        env.update(self.variables)


class Node(pydantic.BaseModel):
    """The agent a build runs on."""

    name: str = pydantic.Field(default="built-in")
    environment: typing.Mapping[str, str] = pydantic.Field(default_factory=dict)
    inherit_environment: bool = pydantic.Field(default=True)
    properties: typing.Sequence[EnvironmentVariablesNodeProperty] = pydantic.Field(
        default_factory=list
    )

    def __str__(self) -> str:
        return self.name

    def computer_environment(self) -> EnvVars:
        env = EnvVars(os.environ) if self.inherit_environment else EnvVars()
        env.update(self.environment)
        return env


@dataclasses.dataclass()
class Build:
    job: str
    number: int
    workspace: pathlib.Path
    node: Node = dataclasses.field(default_factory=Node)
    variables: typing.Mapping[str, str] = dataclasses.field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.job} #{self.number}"

    def bind(self, log: structlog.stdlib.BoundLogger) -> structlog.stdlib.BoundLogger:
        return log.bind(job=self.job, build=self.number)

    def environment(self) -> EnvVars:
        env = EnvVars(self.variables)
        env["JOB_NAME"] = self.job
        env["BUILD_NUMBER"] = str(self.number)
        env["BUILD_TAG"] = f"git-scm-{self.job}-{self.number}"
        env["WORKSPACE"] = self.workspace.as_posix()
        return env
