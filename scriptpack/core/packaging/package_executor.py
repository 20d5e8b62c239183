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

"""Packaging pipeline shared by the CLI and programmatic callers.

build -> load descriptors -> flatten -> incremental filter -> bundle -> archive
-> persist descriptors. Archiving only starts after bundling has completed for
every script, since it consumes the bundler output.
"""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from scriptpack.common.async_utils import gather_settled
from scriptpack.common.config import Config, load_config
from scriptpack.common.logging_config import resolve_log_file, setup_logging
from scriptpack.common.system_constants import (
    BUNDLING_PROGRESS_SHARE,
    DEFAULT_CONFIG_FILE,
    DEFAULT_MODULE_PATHS,
    DEFAULT_TARGET_DIR,
    PROGRESS_UNITS_PER_SCRIPT,
    TOOL_NODE_MODULES,
)
from scriptpack.models import ScriptDescriptor
from .archive_builder import create_package
from .build_step import BuildStep, CommandBuildStep
from .bundler import Bundler, BundleRequest, BundleResult, EsbuildBundler
from .dependency_flattener import flatten_dependencies
from .descriptor_store import DescriptorError, load_descriptors, save_descriptors
from .events import PackageEvents
from .incremental_filter import filter_unmodified
from .progress import NullProgress, ProgressReporter, bundler_progress_handler

logger = logging.getLogger(__name__)


class PackagingError(RuntimeError):
    """One or more archives could not be created."""

    def __init__(self, failures: Dict[str, BaseException]) -> None:
        names = ", ".join(sorted(failures))
        super().__init__(f"{len(failures)} 个脚本打包失败: {names}")
        self.failures = failures


@dataclass
class PackageOptions:
    """User provided options (mirrors CLI flags)."""

    target: str | None = None
    files: List[str] | None = None
    only_modified: bool | None = None
    minify: bool | None = None
    debug: bool | None = None
    directory: Path | None = None


@dataclass
class EffectivePackageOptions:
    """Options resolved against configuration defaults."""

    directory: Path
    target: Path
    files: List[str] = field(default_factory=list)
    only_modified: bool = False
    minify: bool = False
    module_paths: List[str] = field(default_factory=lambda: list(DEFAULT_MODULE_PATHS))
    debug: bool = False
    log_level: str = "INFO"
    log_file: Path | None = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["directory"] = str(self.directory)
        data["target"] = str(self.target)
        data["log_file"] = str(self.log_file) if self.log_file else None
        return data


@dataclass
class PackageResult:
    """Outcome of a packaging run."""

    created: List[str]
    ignored: List[str]
    options: EffectivePackageOptions
    started_at: datetime
    finished_at: datetime
    archives: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created": self.created,
            "ignored": self.ignored,
            "archives": self.archives,
            "options": self.options.to_dict(),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
        }


def resolve_options(cfg: Config, options: PackageOptions | None) -> EffectivePackageOptions:
    provided = options or PackageOptions()

    cfg_logging = cfg.section("logging") if isinstance(cfg, Config) else {}
    cfg_packaging = cfg.section("packaging") if isinstance(cfg, Config) else {}

    directory = Path(provided.directory or Path.cwd()).resolve()
    target_raw = provided.target or cfg_packaging.get("target") or DEFAULT_TARGET_DIR
    target = (directory / target_raw).resolve()

    only_default = bool(cfg_packaging.get("only_modified", False))
    minify_default = bool(cfg_packaging.get("minify", False))
    level = str(cfg_logging.get("level", "INFO")).upper()
    debug_default = bool(cfg_logging.get("debug", False)) or level == "DEBUG"

    module_paths = [str(p) for p in (cfg_packaging.get("module_paths") or DEFAULT_MODULE_PATHS)]
    if str(TOOL_NODE_MODULES) not in module_paths:
        module_paths.append(str(TOOL_NODE_MODULES))

    debug = debug_default if provided.debug is None else provided.debug
    resolved = EffectivePackageOptions(
        directory=directory,
        target=target,
        files=list(provided.files or []),
        only_modified=only_default if provided.only_modified is None else provided.only_modified,
        minify=minify_default if provided.minify is None else provided.minify,
        module_paths=module_paths,
        debug=debug,
        log_level="DEBUG" if debug else level,
        log_file=resolve_log_file(cfg_logging.get("file"), directory),
    )
    logger.debug("解析打包参数: %s", resolved.to_dict())
    return resolved


def derive_descriptors(descriptors: Sequence[ScriptDescriptor], target: Path) -> List[ScriptDescriptor]:
    """计算派生路径，并保证脚本名称在本次运行中唯一。"""
    derived = [descriptor.derive_paths(target) for descriptor in descriptors]
    duplicates = sorted(name for name, count in Counter(d.script_name for d in derived).items() if count > 1)
    if duplicates:
        raise DescriptorError(f"脚本名称重复: {', '.join(duplicates)}")
    return derived


class PackagePipeline:
    """Runs one packaging pass over the descriptors below ``options.target``."""

    def __init__(
        self,
        options: EffectivePackageOptions,
        *,
        bundler: Bundler,
        build_step: Optional[BuildStep] = None,
        progress: Optional[ProgressReporter] = None,
        events: Optional[PackageEvents] = None,
    ) -> None:
        self.options = options
        self.bundler = bundler
        self.build_step = build_step or CommandBuildStep(cwd=options.directory)
        self.progress = progress or NullProgress()
        self.events = events or PackageEvents()

    async def create_bundles(self, scripts: Sequence[ScriptDescriptor]) -> BundleResult:
        target = self.options.target
        request = BundleRequest(
            directory=target,
            entries={script.script_name: (target / script.main).resolve() for script in scripts},
            module_paths=self.options.module_paths,
            minify=self.options.minify,
            progress=bundler_progress_handler(self.progress),
        )
        stats = await asyncio.to_thread(self.bundler.bundle, request)
        for error in stats.errors:
            logger.error("%s", error)
        for warning in stats.warnings:
            logger.warning("%s", warning)
        self.progress.update(BUNDLING_PROGRESS_SHARE, "bundled", force=True)
        return stats

    async def create_packages(
        self, scripts: Sequence[ScriptDescriptor]
    ) -> Tuple[List[ScriptDescriptor], Dict[str, BaseException]]:
        results = await gather_settled(create_package(script, self.progress, self.events) for script in scripts)
        packaged: List[ScriptDescriptor] = []
        failures: Dict[str, BaseException] = {}
        for script, outcome in zip(scripts, results):
            if isinstance(outcome, BaseException):
                failures[script.script_name] = outcome
            else:
                packaged.append(outcome)
        return packaged, failures

    @staticmethod
    def _stale_records(
        loaded: Sequence[ScriptDescriptor],
        pending: Sequence[ScriptDescriptor],
        failures: Dict[str, BaseException],
    ) -> List[ScriptDescriptor]:
        """失败脚本的旧压缩包已被删除，去掉描述文件中残留的 zipFile/archiveSize。

        其余内容按读取时原样回写；原本没有这两个字段的描述文件不做改动。
        """
        failed_mains = {script.main for script in pending if script.script_name in failures}
        return [
            descriptor.without_archive()
            for descriptor in loaded
            if descriptor.main in failed_mains
            and (descriptor.zip_file is not None or descriptor.archive_size is not None)
        ]

    async def run(self) -> PackageResult:
        opts = self.options
        started = datetime.now(timezone.utc)

        # 总是先执行构建，确保脚本是最新的
        await asyncio.to_thread(self.build_step.run, opts.target, list(opts.files))

        descriptors = await load_descriptors(opts.target)
        scripts = flatten_dependencies(descriptors)

        pending = filter_unmodified(scripts, opts.only_modified, self.events)
        pending_mains = {script.main for script in pending}
        ignored = [script.script_name for script in scripts if script.main not in pending_mains]

        packaged: List[ScriptDescriptor] = []
        failures: Dict[str, BaseException] = {}
        if pending:
            pending = derive_descriptors(pending, opts.target)
            logger.info("待打包脚本 %d 个: %s", len(pending), [s.script_name for s in pending])

            self.progress.start(len(pending) * PROGRESS_UNITS_PER_SCRIPT)
            try:
                await self.create_bundles(pending)
                packaged, failures = await self.create_packages(pending)
            finally:
                self.progress.stop()

            await save_descriptors(packaged + self._stale_records(descriptors, pending, failures))
        else:
            logger.info("没有需要打包的脚本")

        if failures:
            raise PackagingError(failures)

        logger.info("✅  打包完成")
        return PackageResult(
            created=[d.script_name for d in packaged],
            ignored=ignored,
            options=opts,
            started_at=started,
            finished_at=datetime.now(timezone.utc),
            archives={d.script_name: d.archive_size or 0 for d in packaged},
        )


def execute_package(
    options: PackageOptions | None = None,
    *,
    config_path: Path | None = None,
    bundler: Optional[Bundler] = None,
    build_step: Optional[BuildStep] = None,
    progress: Optional[ProgressReporter] = None,
    events: Optional[PackageEvents] = None,
) -> PackageResult:
    """Load configuration, set up logging and run the pipeline to completion."""

    cfg_path = config_path or DEFAULT_CONFIG_FILE
    cfg = load_config(cfg_path)
    effective = resolve_options(cfg, options)
    setup_logging(effective.log_level, effective.log_file)

    logger.info("加载配置文件: %s", cfg_path)
    logger.info("打包参数: %s", effective.to_dict())

    bundler_cfg = cfg.section("bundler")
    pipeline = PackagePipeline(
        effective,
        bundler=bundler
        or EsbuildBundler(
            executable=str(bundler_cfg.get("executable") or "esbuild"),
            platform=str(bundler_cfg.get("platform") or "node"),
        ),
        build_step=build_step or CommandBuildStep(cfg.section("build").get("command"), cwd=effective.directory),
        progress=progress,
        events=events,
    )
    return asyncio.run(pipeline.run())
