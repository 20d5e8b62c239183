# SPDX-License-Identifier: GPL-3.0-or-later
# This file is part of scriptpack.
#
# scriptpack is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# scriptpack is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with scriptpack.  If not, see <https://www.gnu.org/licenses/>.

"""配置加载模块。"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import os
import yaml

from ..system_constants import DEFAULT_CONFIG_FILE

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Config(dict):
    """配置对象，dict子类，支持点式访问（简单实现）。"""

    def __getattr__(self, item):  # noqa: D401
        try:
            return self[item]
        except KeyError as exc:
            raise AttributeError(item) from exc

    def section(self, name: str) -> Dict[str, Any]:
        value = self.get(name)
        return value if isinstance(value, dict) else {}


def load_config(path: Path | None = None) -> Config:
    """加载YAML配置，返回Config对象。"""

    cfg_path = path or DEFAULT_CONFIG_FILE
    data: Dict[str, Any] = {}
    if cfg_path.exists():
        with cfg_path.open("r", encoding="utf-8") as file:
            data = yaml.safe_load(file) or {}

    env_overrides = _load_env_overrides()
    if env_overrides:
        data = _deep_merge_dicts(data, env_overrides)

    return Config(data)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _load_env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    def _pick_env(*keys: str) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value.strip()
        return None

    target = _pick_env("SCRIPTPACK_TARGET")
    if target:
        overrides.setdefault("packaging", {})["target"] = target

    only_modified = _pick_env("SCRIPTPACK_ONLY_MODIFIED")
    if only_modified is not None:
        overrides.setdefault("packaging", {})["only_modified"] = _parse_bool(only_modified)

    minify = _pick_env("SCRIPTPACK_MINIFY")
    if minify is not None:
        overrides.setdefault("packaging", {})["minify"] = _parse_bool(minify)

    build_command = _pick_env("SCRIPTPACK_BUILD_COMMAND")
    if build_command:
        overrides.setdefault("build", {})["command"] = build_command

    bundler = _pick_env("SCRIPTPACK_BUNDLER")
    if bundler:
        overrides.setdefault("bundler", {})["executable"] = bundler

    log_file = _pick_env("SCRIPTPACK_LOG_FILE")
    if log_file:
        overrides.setdefault("logging", {})["file"] = log_file

    level = _pick_env("SCRIPTPACK_LOG_LEVEL")
    if level:
        overrides.setdefault("logging", {})["level"] = level.upper()

    return overrides


def _deep_merge_dicts(original: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(original)
    for key, value in updates.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result
