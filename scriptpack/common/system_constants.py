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

"""全局常量与魔法字符串集中管理。"""
from pathlib import Path

# 配置目录
PACKAGE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = PACKAGE_DIR.parent
CONFIG_DIR = PACKAGE_DIR / "config"

DEFAULT_CONFIG_FILE = CONFIG_DIR / "default.yml"
DEFAULT_TARGET_DIR = ".build"
# 相对于工作目录
DEFAULT_LOG_FILE = "logs/scriptpack.log"

# 产物命名
SCRIPT_EXTENSION = ".js"
DESCRIPTOR_SUFFIX = ".info.json"
BUNDLE_SUFFIX = ".bundle.js"
ARCHIVE_SUFFIX = ".zip"
MANIFEST_NAME = "package.json"

# 生成的 package.json 固定字段
MANIFEST_VERSION = "1.0"
MANIFEST_LICENSE = "Apache-2.0"

# 进度：每个脚本 2 个子阶段 x 5 个单位，打包阶段占前 80%
PROGRESS_UNITS_PER_SCRIPT = 2 * 5
BUNDLING_PROGRESS_SHARE = 0.8

# 打包器模块解析路径：目标目录下的 node_modules 之外，总是附加工具自身的 node_modules
DEFAULT_MODULE_PATHS = ["node_modules"]
TOOL_NODE_MODULES = PROJECT_ROOT / "node_modules"
