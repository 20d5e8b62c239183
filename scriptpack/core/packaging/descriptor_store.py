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

"""读取与回写构建步骤产生的 *.info.json 描述文件。"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Sequence

from pydantic import ValidationError

from scriptpack.common.system_constants import DESCRIPTOR_SUFFIX
from scriptpack.models import ScriptDescriptor

logger = logging.getLogger(__name__)


class DescriptorError(RuntimeError):
    """描述文件缺失、格式错误或内容冲突。"""


def discover_descriptor_files(target: Path) -> List[Path]:
    if not Path(target).is_dir():
        return []
    return sorted(p for p in Path(target).rglob(f"*{DESCRIPTOR_SUFFIX}") if p.is_file())


def read_descriptor(path: Path) -> ScriptDescriptor:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise DescriptorError(f"无法读取描述文件 {path}: {exc}") from exc
    try:
        descriptor = ScriptDescriptor.model_validate(data)
    except ValidationError as exc:
        raise DescriptorError(f"描述文件格式无效 {path}: {exc}") from exc
    if not descriptor.info_file:
        descriptor = descriptor.with_info_file(Path(path).resolve())
    return descriptor


def write_descriptor(descriptor: ScriptDescriptor) -> Path:
    if not descriptor.info_file:
        raise DescriptorError(f"脚本 {descriptor.script_name} 缺少 infoFile，无法保存")
    path = Path(descriptor.info_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(descriptor.to_json_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.debug("已更新描述文件 %s", path)
    return path


async def load_descriptors(target: Path) -> List[ScriptDescriptor]:
    """并发加载 *target* 下全部描述文件。"""
    files = discover_descriptor_files(target)
    logger.debug("发现 %d 个描述文件: %s", len(files), [str(f) for f in files])
    return list(await asyncio.gather(*(asyncio.to_thread(read_descriptor, f) for f in files)))


async def save_descriptors(descriptors: Sequence[ScriptDescriptor]) -> List[Path]:
    return list(await asyncio.gather(*(asyncio.to_thread(write_descriptor, d) for d in descriptors)))
