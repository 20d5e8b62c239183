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

"""通用工具包。

该包聚合了配置、日志与并发等辅助工具，供项目其它模块统一引用。
"""
from .async_utils import gather_settled  # noqa: F401
