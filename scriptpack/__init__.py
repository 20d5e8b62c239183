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

"""脚本打包工具。

提供：
- *.info.json 描述文件的读取与回写
- 依赖展开与增量打包
- bundle 生成与可部署压缩包组装
- CLI 接口
"""
from .application_version import __version__  # noqa: F401
