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

"""依赖展开：把每个脚本的 requires 替换为去重后的传递闭包。

循环依赖不会报错：闭包中始终排除脚本自身。
"""
from __future__ import annotations

from typing import Dict, List, Sequence

from scriptpack.models import ScriptDescriptor, normalize_script_path


def _closure(start: str, graph: Dict[str, Sequence[str]]) -> List[str]:
    seen = {start}
    ordered: List[str] = []
    # 显式栈的深度优先前序遍历，保持 requires 的声明顺序
    stack = list(reversed(graph.get(start, ())))
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        ordered.append(current)
        stack.extend(reversed(graph.get(current, ())))
    return ordered


def flatten_dependencies(descriptors: Sequence[ScriptDescriptor]) -> List[ScriptDescriptor]:
    graph: Dict[str, List[str]] = {}
    for descriptor in descriptors:
        key = normalize_script_path(descriptor.main)
        deps = graph.setdefault(key, [])
        deps.extend(normalize_script_path(req) for req in descriptor.requires)

    return [
        descriptor.with_requires(_closure(normalize_script_path(descriptor.main), graph))
        for descriptor in descriptors
    ]
