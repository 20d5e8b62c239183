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

"""并发执行相关辅助函数。"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable, List


async def gather_settled(aws: Iterable[Awaitable[Any]]) -> List[Any]:
    """并发等待所有 *aws*，按输入顺序返回结果。

    单个任务抛出的异常作为结果元素返回，不会取消其它仍在执行的任务，
    便于上层逐个判断成功与失败。
    """
    return list(await asyncio.gather(*aws, return_exceptions=True))
