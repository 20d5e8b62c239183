# SPDX-License-Identifier: GPL-3.0-or-later
"""构建步骤：在打包前确保 *.info.json 与入口脚本是最新的。"""
from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class BuildError(RuntimeError):
    """构建命令失败，整个打包流程终止。"""


class BuildStep(Protocol):
    def run(self, target: Path, files: Sequence[str]) -> None: ...


class CommandBuildStep:
    """执行配置中的构建命令；未配置时视为脚本已是最新。"""

    def __init__(self, command: Optional[str] = None, cwd: Optional[Path] = None) -> None:
        self.command = command
        self.cwd = cwd

    def run(self, target: Path, files: Sequence[str]) -> None:
        if not self.command:
            logger.info("未配置构建命令，跳过构建步骤")
            return

        cmd = shlex.split(self.command) + list(files)
        env = dict(os.environ)
        env["SCRIPTPACK_TARGET"] = str(target)
        logger.info("执行构建命令: %s", " ".join(shlex.quote(part) for part in cmd))
        try:
            subprocess.run(cmd, cwd=self.cwd, env=env, check=True)
        except FileNotFoundError as exc:
            raise BuildError(f"构建命令不存在: {cmd[0]}") from exc
        except subprocess.CalledProcessError as exc:
            raise BuildError(f"构建失败，退出码 {exc.returncode}") from exc
