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

"""命令行接口。"""
from __future__ import annotations

import asyncio
import os
from typing import List

import typer
from rich.console import Console

from scriptpack.common.config import load_config
from scriptpack.common.logging_config import setup_logging
from scriptpack.core.packaging import (
    CREATE_PACKAGE,
    IGNORE_PACKAGE,
    NullProgress,
    PackageEvents,
    PackageOptions,
    PackagingError,
    RichProgress,
    execute_package,
    flatten_dependencies,
    load_descriptors,
)
from scriptpack.core.packaging.package_executor import resolve_options
from scriptpack.models import ScriptDescriptor


def _is_en() -> bool:
    lang = os.environ.get("SCRIPTPACK_LANG", "").lower()
    return lang.startswith("en")


def _t(cn: str, en: str) -> str:
    return en if _is_en() else cn


app = typer.Typer(help=_t("脚本打包 CLI", "Script packaging CLI"))
console = Console()


def _build_events() -> PackageEvents:
    events = PackageEvents()

    def on_ignore(descriptor: ScriptDescriptor) -> None:
        console.print(_t(f"[yellow]已跳过[/] {descriptor.script_name}（压缩包已存在）",
                         f"[yellow]ignored[/] {descriptor.script_name} (archive exists)"))

    def on_create(descriptor: ScriptDescriptor) -> None:
        console.print(_t(f"[green]已创建[/] {descriptor.archive_name} ({descriptor.archive_size} 字节)",
                         f"[green]created[/] {descriptor.archive_name} ({descriptor.archive_size} bytes)"))

    events.on(IGNORE_PACKAGE, on_ignore)
    events.on(CREATE_PACKAGE, on_create)
    return events


@app.command(help=_t("构建并把每个脚本打包为可部署的压缩包。", "Build and package every script into a deployable archive."))
def package(
    target: str | None = typer.Option(None, help=_t("构建产物目录，缺省读取配置", "Build target directory; defaults from config")),
    files: List[str] | None = typer.Option(None, "--files", "-f", help=_t("传给构建步骤的源文件（可重复）", "Source files passed to the build step (repeatable)")),
    only_modified: bool | None = typer.Option(None, "--only-modified/--all", help=_t("仅打包压缩包不存在的脚本", "Only package scripts whose archive is missing")),
    minify: bool | None = typer.Option(None, "--minify/--no-minify", help=_t("压缩 bundle 输出", "Minify bundle output")),
    debug: bool | None = typer.Option(None, "--debug/--no-debug", help=_t("调试模式：启用额外调试日志", "Debug mode: enable extra logging")),
    progress: bool = typer.Option(True, "--progress/--no-progress", help=_t("显示进度条", "Show progress bar")),
):
    opts = PackageOptions(target=target, files=files, only_modified=only_modified, minify=minify, debug=debug)
    reporter = RichProgress(console=console) if progress else NullProgress()
    try:
        result = execute_package(opts, progress=reporter, events=_build_events())
    except PackagingError as exc:
        console.print(_t(f"[red]打包失败: {exc}[/red]", f"[red]Packaging failed: {exc}[/red]"))
        for name, error in sorted(exc.failures.items()):
            console.print(f"  [red]{name}[/red]: {error}")
        raise typer.Exit(code=2) from exc
    except Exception as exc:  # pragma: no cover - surfaced to user as error message
        console.print(_t(f"[red]执行失败: {exc}[/red]", f"[red]Execution failed: {exc}[/red]"))
        raise typer.Exit(code=2) from exc

    console.print(_t("✅  打包完成", "✅  packaging completed"))
    console.print_json(data={"status": "ok", **result.to_dict()})


@app.command(help=_t("列出目标目录下的脚本描述（已展开依赖），不执行构建。", "List script descriptors (flattened) without building."))
def descriptors(
    target: str | None = typer.Option(None, help=_t("构建产物目录，缺省读取配置", "Build target directory; defaults from config")),
):
    effective = resolve_options(load_config(), PackageOptions(target=target))
    setup_logging(effective.log_level, effective.log_file)
    try:
        loaded = asyncio.run(load_descriptors(effective.target))
    except Exception as exc:  # noqa: BLE001 - surfaced给用户
        console.print(_t(f"[red]读取描述文件失败: {exc}[/red]", f"[red]Failed to read descriptors: {exc}[/red]"))
        raise typer.Exit(code=2) from exc

    console.print_json(data=[d.to_json_dict() for d in flatten_dependencies(loaded)])


if __name__ == "__main__":  # pragma: no cover
    app()
