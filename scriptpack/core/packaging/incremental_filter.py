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

"""增量过滤：跳过压缩包仍然存在的脚本。

只以 zipFile 是否存在作为“未修改”的依据，不比对内容；源码变化但产物同名时
无法识别，需要全量打包。
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from scriptpack.models import ScriptDescriptor
from .events import IGNORE_PACKAGE, PackageEvents

logger = logging.getLogger(__name__)


def _archive_exists(descriptor: ScriptDescriptor) -> bool:
    return bool(descriptor.zip_file) and Path(descriptor.zip_file).is_file()


def filter_unmodified(
    descriptors: Sequence[ScriptDescriptor],
    only_modified: bool,
    events: Optional[PackageEvents] = None,
) -> List[ScriptDescriptor]:
    if not only_modified:
        return list(descriptors)

    pending: List[ScriptDescriptor] = []
    for descriptor in descriptors:
        if _archive_exists(descriptor):
            logger.info("跳过未修改的脚本 %s (%s)", descriptor.script_name, descriptor.zip_file)
            if events is not None:
                events.emit(IGNORE_PACKAGE, descriptor)
            continue
        pending.append(descriptor.without_zip_file())
    return pending
