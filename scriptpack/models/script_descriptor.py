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

"""脚本描述（*.info.json）数据模型。

描述对象在各阶段之间不可变：每个阶段通过 ``with_*`` / ``derive_paths``
返回新的实例，而不是在原对象上追加字段。
"""
from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from scriptpack.common.system_constants import (
    ARCHIVE_SUFFIX,
    BUNDLE_SUFFIX,
    DESCRIPTOR_SUFFIX,
    SCRIPT_EXTENSION,
)


def script_name_from_main(main: str) -> str:
    """``html/html.js`` -> ``html``。仅去掉 ``.js`` 后缀，与构建产物命名保持一致。"""
    base = posixpath.basename(main.replace("\\", "/"))
    if base.endswith(SCRIPT_EXTENSION):
        return base[: -len(SCRIPT_EXTENSION)]
    return base


def normalize_script_path(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


class ScriptDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    name: Optional[str] = None
    main: str
    is_static: bool = Field(False, alias="isStatic")
    requires: Tuple[str, ...] = ()
    dirname: Optional[str] = None
    bundle_name: Optional[str] = Field(None, alias="bundleName")
    bundle_path: Optional[str] = Field(None, alias="bundlePath")
    archive_name: Optional[str] = Field(None, alias="archiveName")
    zip_file: Optional[str] = Field(None, alias="zipFile")
    archive_size: Optional[int] = Field(None, alias="archiveSize")
    info_file: Optional[str] = Field(None, alias="infoFile")

    @property
    def script_name(self) -> str:
        return self.name or script_name_from_main(self.main)

    @property
    def main_basename(self) -> str:
        return posixpath.basename(self.main.replace("\\", "/"))

    def derive_paths(self, target: Path) -> "ScriptDescriptor":
        """根据 ``main`` 与目标目录计算全部派生文件名/路径。"""
        name = script_name_from_main(self.main)
        dirname = "" if self.is_static else posixpath.dirname(normalize_script_path(self.main))
        if dirname == ".":
            dirname = ""
        target = Path(target).resolve()
        bundle_name = f"{name}{BUNDLE_SUFFIX}"
        archive_name = f"{name}{ARCHIVE_SUFFIX}"
        return self.model_copy(
            update={
                "name": name,
                "dirname": dirname,
                "bundle_name": bundle_name,
                "bundle_path": str(target / bundle_name),
                "archive_name": archive_name,
                "zip_file": str(target / dirname / archive_name),
                "info_file": str(target / dirname / f"{name}{DESCRIPTOR_SUFFIX}"),
                "archive_size": None,
            }
        )

    def with_requires(self, paths: Iterable[str]) -> "ScriptDescriptor":
        return self.model_copy(update={"requires": tuple(paths)})

    def without_zip_file(self) -> "ScriptDescriptor":
        return self.model_copy(update={"zip_file": None})

    def without_archive(self) -> "ScriptDescriptor":
        return self.model_copy(update={"zip_file": None, "archive_size": None})

    def with_archive_size(self, size: int) -> "ScriptDescriptor":
        return self.model_copy(update={"archive_size": size})

    def with_info_file(self, path: Path) -> "ScriptDescriptor":
        return self.model_copy(update={"info_file": str(path)})

    def to_json_dict(self) -> Dict[str, Any]:
        """按声明顺序输出 camelCase 字段，未知字段追加在末尾，空值省略。"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
