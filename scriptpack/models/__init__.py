# SPDX-License-Identifier: GPL-3.0-or-later
"""数据模型。"""
from .script_descriptor import ScriptDescriptor, normalize_script_path, script_name_from_main  # noqa: F401
