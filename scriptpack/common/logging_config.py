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


"""日志初始化：控制台输出 + 按配置路径写入的轮转日志文件。"""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .system_constants import DEFAULT_LOG_FILE

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 2 * 1024 * 1024
LOG_BACKUPS = 5


def resolve_log_file(configured: str | Path | None, base: Path | None = None) -> Path:
    """把配置中的日志路径解析为绝对路径，相对路径以 *base*（缺省为工作目录）为基准。"""
    path = Path(configured or DEFAULT_LOG_FILE).expanduser()
    if not path.is_absolute():
        path = Path(base or Path.cwd()) / path
    return path.resolve()


def _file_handler(path: Path, level: int) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(level: str = "INFO", log_file: str | Path | None = None) -> Path:
    """初始化根日志器并返回实际使用的日志文件路径。

    重复调用会替换之前的处理器（``force=True``），因此日志级别与文件都可更新。
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    path = resolve_log_file(log_file)

    logging.basicConfig(level=log_level, format=LOG_FORMAT, datefmt=DATE_FORMAT, force=True)
    root = logging.getLogger()
    root.setLevel(log_level)
    root.addHandler(_file_handler(path, log_level))

    logging.getLogger(__name__).debug("日志系统初始化完成，文件: %s", path)
    return path
