"""Continuous-integration detection."""

from __future__ import annotations

import os
from typing import Mapping

_CI_VARIABLES = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "BUILD_NUMBER",
    "RUN_ID",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "BUILDKITE",
    "CIRCLECI",
    "TRAVIS",
    "TF_BUILD",
    "JENKINS_URL",
    "TEAMCITY_VERSION",
    "NOW_BUILDER",
)
_FALSE_VALUES = {"", "0", "false", "no", "off"}


def is_running_on_ci_server(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    for name in _CI_VARIABLES:
        value = env.get(name)
        if value is not None and value.strip().lower() not in _FALSE_VALUES:
            return True
    return False


__all__ = ["is_running_on_ci_server"]
