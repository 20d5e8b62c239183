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

"""生成可部署的压缩包：package.json + 打包后的入口脚本。

压缩包内容是确定性的（固定时间戳与权限），先写入 ``<zip>.tmp``，
成功后再原子替换目标文件；失败时不会留下被视为有效的产物。
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional

from scriptpack.common.system_constants import MANIFEST_LICENSE, MANIFEST_NAME, MANIFEST_VERSION
from scriptpack.models import ScriptDescriptor
from .events import CREATE_PACKAGE, PackageEvents
from .progress import NullProgress, ProgressReporter

logger = logging.getLogger(__name__)

_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


class ArchiveError(RuntimeError):
    """单个脚本的压缩包创建失败。"""

    def __init__(self, script_name: str, message: str) -> None:
        super().__init__(message)
        self.script_name = script_name


def build_manifest(descriptor: ScriptDescriptor) -> Dict[str, str]:
    name = descriptor.script_name
    return {
        "name": name,
        "version": MANIFEST_VERSION,
        "description": f"Lambda function of {name}",
        "main": descriptor.main_basename,
        "license": MANIFEST_LICENSE,
    }


def _zip_info(arcname: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(arcname, date_time=_ZIP_EPOCH)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("无法删除残留文件 %s: %s", path, exc)


def write_archive(descriptor: ScriptDescriptor, tick: Callable[[str], None]) -> int:
    """写出压缩包并返回写入的总字节数（阻塞调用）。"""
    name = descriptor.script_name
    if not descriptor.zip_file or not descriptor.bundle_path:
        raise ArchiveError(name, f"脚本 {name} 尚未生成 zipFile/bundlePath")

    entry_name = descriptor.main_basename
    if entry_name == MANIFEST_NAME:
        # zipfile 对重名条目只给出警告，这里直接视为失败
        raise ArchiveError(name, f"入口脚本名与 {MANIFEST_NAME} 冲突")

    zip_path = Path(descriptor.zip_file)
    tmp_path = zip_path.with_name(zip_path.name + ".tmp")
    manifest = json.dumps(build_manifest(descriptor), indent=2)

    try:
        bundle = Path(descriptor.bundle_path).read_bytes()
        zip_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(tmp_path, "w") as archive:
            archive.writestr(_zip_info(MANIFEST_NAME), manifest)
            tick(MANIFEST_NAME)
            archive.writestr(_zip_info(entry_name), bundle)
            tick(entry_name)
        size = tmp_path.stat().st_size
        os.replace(tmp_path, zip_path)
    except Exception as exc:  # noqa: BLE001 - 清理后统一转换为 ArchiveError
        _remove_quietly(tmp_path)
        # 旧压缩包同样移除，避免增量模式误判为已打包
        _remove_quietly(zip_path)
        raise ArchiveError(name, f"无法创建压缩包 {zip_path.name}: {exc}") from exc
    return size


async def create_package(
    descriptor: ScriptDescriptor,
    progress: Optional[ProgressReporter] = None,
    events: Optional[PackageEvents] = None,
) -> ScriptDescriptor:
    """为单个脚本创建压缩包，返回带 archiveSize 的新描述对象。"""
    reporter = progress or NullProgress()
    name = descriptor.script_name
    archive_name = descriptor.archive_name or Path(descriptor.zip_file or name).name

    def tick(entry: str) -> None:
        logger.debug("%s: A %s", archive_name, entry)
        reporter.tick(f"packaging {name}")

    logger.debug("准备压缩包 %s", archive_name)
    try:
        size = await asyncio.to_thread(write_archive, descriptor, tick)
    except ArchiveError as exc:
        logger.error("[error] %s", exc)
        raise

    logger.debug("%s: 压缩包已创建，共 %d 字节", archive_name, size)
    packaged = descriptor.with_archive_size(size)
    if events is not None:
        events.emit(CREATE_PACKAGE, packaged)
    return packaged
