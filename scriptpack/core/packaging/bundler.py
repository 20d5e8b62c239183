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

"""脚本打包器接口与基于 esbuild 的默认实现。

打包器一次接收全部 name -> 入口文件映射，把 ``<name>.bundle.js`` 写到工作目录，
编译错误与警告通过返回值给出，而不是抛出异常。
"""
from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Protocol, Sequence

from scriptpack.common.system_constants import BUNDLE_SUFFIX
from .progress import BUILDING_PHASE, BundlerProgressHandler

logger = logging.getLogger(__name__)


class BundlerError(RuntimeError):
    """打包器无法启动（如可执行文件缺失），属于致命错误。"""


def bundle_file_name(name: str) -> str:
    return f"{name}{BUNDLE_SUFFIX}"


@dataclass
class BundleRequest:
    directory: Path
    entries: Mapping[str, Path]
    module_paths: Sequence[str] = ()
    minify: bool = False
    progress: Optional[BundlerProgressHandler] = None

    def report(self, percent: float, phase: str, detail: Optional[str] = None) -> None:
        if self.progress is not None:
            self.progress(percent, phase, detail)


@dataclass
class BundleResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class Bundler(Protocol):
    def bundle(self, request: BundleRequest) -> BundleResult: ...


class EsbuildBundler:
    """逐个入口调用 esbuild CLI 生成 bundle。"""

    def __init__(self, executable: str = "esbuild", platform: str = "node") -> None:
        self.executable = executable
        self.platform = platform

    def _node_path(self, request: BundleRequest) -> str:
        paths = []
        for raw in request.module_paths:
            p = Path(raw)
            paths.append(str(p if p.is_absolute() else (request.directory / p).resolve()))
        return os.pathsep.join(paths)

    def _command(self, entry: Path, outfile: Path, minify: bool) -> List[str]:
        cmd = [
            self.executable,
            str(entry),
            "--bundle",
            f"--platform={self.platform}",
            f"--outfile={outfile}",
            "--log-level=warning",
        ]
        if minify:
            cmd.append("--minify")
        return cmd

    def bundle(self, request: BundleRequest) -> BundleResult:
        result = BundleResult()
        env = dict(os.environ)
        env["NODE_PATH"] = self._node_path(request)
        total = len(request.entries) or 1

        for index, (name, entry) in enumerate(request.entries.items()):
            request.report(index / total, BUILDING_PHASE, name)
            outfile = Path(request.directory) / bundle_file_name(name)
            cmd = self._command(Path(entry), outfile, request.minify)
            logger.debug("执行打包命令: %s", cmd)
            try:
                completed = subprocess.run(
                    cmd,
                    cwd=request.directory,
                    env=env,
                    capture_output=True,
                    text=True,
                    check=False,
                )
            except FileNotFoundError as exc:
                raise BundlerError(f"未找到打包器可执行文件: {self.executable}") from exc

            output = (completed.stderr or "").strip()
            if completed.returncode != 0:
                result.errors.append(f"{name}: {output or f'exit code {completed.returncode}'}")
            elif output:
                result.warnings.append(f"{name}: {output}")

        request.report(1.0, "emitting")
        return result
