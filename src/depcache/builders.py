# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Build delegate running ``docker build`` against the dependency stage."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from .constants import BASE_IMAGE_BUILD_ARG, DEFAULT_BUILD_TARGET, DEFAULT_DOCKERFILE, DEPS_TAG_BUILD_ARG
from .errors import BuildError, DeadlineExceeded
from .interfaces.build import BuildContext
from .subprocess_utils import output_tail, run_command

LOGGER = logging.getLogger(__name__)

# Multi-stage `--target` builds need BuildKit on older docker engines.
_BUILD_ENV: Final[dict[str, str]] = {"DOCKER_BUILDKIT": "1"}


class DockerBuildDelegate:
    """Build the dependency stage of a Dockerfile, optionally on a parent image.

    The Dockerfile is expected to declare ``ARG BASE_IMAGE`` for its dependency
    stage; the parent reference is passed through that build argument and is
    omitted entirely for from-scratch builds so the Dockerfile default applies.
    """

    def __init__(
        self,
        *,
        dockerfile: str | Path = DEFAULT_DOCKERFILE,
        target: str = DEFAULT_BUILD_TARGET,
        docker: str = "docker",
        build_args: Mapping[str, str] | None = None,
    ) -> None:
        self._dockerfile = Path(dockerfile)
        self._target = target
        self._docker = docker
        self._build_args = dict(build_args or {})

    def command(self, parent_ref: str | None, context: BuildContext) -> list[str]:
        """Return the ``docker build`` invocation for ``context``."""

        dockerfile = self._dockerfile if self._dockerfile.is_absolute() else context.root / self._dockerfile
        args = [
            self._docker,
            "build",
            "--file",
            str(dockerfile),
            "--target",
            self._target,
            "--tag",
            context.target_tag,
            "--build-arg",
            f"{DEPS_TAG_BUILD_ARG}={context.target_tag}",
        ]
        if parent_ref is not None:
            args.extend(["--build-arg", f"{BASE_IMAGE_BUILD_ARG}={parent_ref}"])
        for name, value in sorted(self._build_args.items()):
            args.extend(["--build-arg", f"{name}={value}"])
        args.append(str(context.root))
        return args

    def build(self, parent_ref: str | None, context: BuildContext) -> str:
        """Run the build and return the local image tag.

        Raises:
            BuildError: If docker is missing or the build exits non-zero.
            DeadlineExceeded: If ``context.timeout`` elapses.
        """

        args = self.command(parent_ref, context)
        LOGGER.debug("running %s", " ".join(args))
        try:
            result = run_command(args, cwd=context.root, env=_BUILD_ENV, timeout=context.timeout)
        except FileNotFoundError as exc:
            raise BuildError(str(exc)) from exc
        except subprocess.TimeoutExpired as exc:
            raise DeadlineExceeded("build") from exc
        if result.returncode != 0:
            raise BuildError(
                f"docker build for {context.target_tag} exited with {result.returncode}",
                output=output_tail(result),
                returncode=result.returncode,
            )
        return context.target_tag


__all__ = ["DockerBuildDelegate"]
