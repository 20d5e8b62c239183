# SPDX-License-Identifier: GPL-3.0-or-later
"""打包流水线：依赖展开、增量过滤、bundle 生成与压缩包组装。"""
from .archive_builder import ArchiveError, build_manifest, create_package  # noqa: F401
from .build_step import BuildError, BuildStep, CommandBuildStep  # noqa: F401
from .bundler import Bundler, BundlerError, BundleRequest, BundleResult, EsbuildBundler  # noqa: F401
from .dependency_flattener import flatten_dependencies  # noqa: F401
from .descriptor_store import DescriptorError, load_descriptors, save_descriptors  # noqa: F401
from .events import CREATE_PACKAGE, IGNORE_PACKAGE, PackageEvents  # noqa: F401
from .incremental_filter import filter_unmodified  # noqa: F401
from .package_executor import (  # noqa: F401
    PackageOptions,
    PackagePipeline,
    PackageResult,
    PackagingError,
    execute_package,
)
from .progress import NullProgress, ProgressReporter, RichProgress  # noqa: F401
