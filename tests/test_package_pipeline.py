# SPDX-License-Identifier: GPL-3.0-or-later
"""打包流水线端到端测试（打包器与构建步骤使用假实现）。"""
from __future__ import annotations

import asyncio
import json
import logging
import zipfile
from pathlib import Path

import pytest

from scriptpack.core.packaging.build_step import BuildError
from scriptpack.core.packaging.descriptor_store import DescriptorError
from scriptpack.core.packaging.events import CREATE_PACKAGE, IGNORE_PACKAGE, PackageEvents
from scriptpack.core.packaging.package_executor import (
    PackagePipeline,
    PackagingError,
    derive_descriptors,
)
from scriptpack.models import ScriptDescriptor

from conftest import FakeBuildStep, FakeBundler, RecordingProgress, write_info


def _events():
    events = PackageEvents()
    seen = {"created": [], "ignored": []}
    events.on(CREATE_PACKAGE, lambda d: seen["created"].append(d))
    events.on(IGNORE_PACKAGE, lambda d: seen["ignored"].append(d))
    return events, seen


def _read_info(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_full_run_packages_every_script(target: Path, make_options):
    a_info = write_info(target, "a.js")
    b_info = write_info(target, "b.js", requires=["a.js"])
    bundler = FakeBundler()
    events, seen = _events()

    result = asyncio.run(
        PackagePipeline(make_options(), bundler=bundler, build_step=FakeBuildStep(), events=events).run()
    )

    assert sorted(result.created) == ["a", "b"]
    assert result.ignored == []
    for name in ("a", "b"):
        with zipfile.ZipFile(target / f"{name}.zip") as archive:
            assert archive.namelist() == ["package.json", f"{name}.js"]
            assert f"bundle of {name}" in archive.read(f"{name}.js").decode("utf-8")

    a_data, b_data = _read_info(a_info), _read_info(b_info)
    assert b_data["requires"] == ["a.js"]
    assert a_data["archiveSize"] > 0 and b_data["archiveSize"] > 0
    assert a_data["archiveSize"] == (target / "a.zip").stat().st_size
    assert b_data["zipFile"] == str((target / "b.zip").resolve())
    assert sorted(d.script_name for d in seen["created"]) == ["a", "b"]
    assert len(bundler.requests) == 1
    assert sorted(bundler.requests[0].entries) == ["a", "b"]


def test_incremental_run_skips_existing_archives(target: Path, make_options):
    zip_a = target / "a.zip"
    zip_a.write_bytes(b"previous archive")
    a_info = write_info(target, "a.js", zipFile=str(zip_a), archiveSize=16)
    write_info(target, "b.js", requires=["a.js"])
    a_before = a_info.read_text(encoding="utf-8")
    bundler = FakeBundler()
    events, seen = _events()

    result = asyncio.run(
        PackagePipeline(
            make_options(only_modified=True), bundler=bundler, build_step=FakeBuildStep(), events=events
        ).run()
    )

    assert [d.script_name for d in seen["ignored"]] == ["a"]
    assert result.ignored == ["a"]
    assert result.created == ["b"]
    assert list(bundler.requests[0].entries) == ["b"]
    assert (target / "b.zip").exists()
    assert zip_a.read_bytes() == b"previous archive"
    assert a_info.read_text(encoding="utf-8") == a_before


def test_bundler_warning_is_logged_once(target: Path, make_options, caplog: pytest.LogCaptureFixture):
    write_info(target, "a.js")
    write_info(target, "b.js", requires=["a.js"])
    bundler = FakeBundler(warnings=["b: unused import 'fs'"])

    with caplog.at_level(logging.WARNING):
        result = asyncio.run(PackagePipeline(make_options(), bundler=bundler, build_step=FakeBuildStep()).run())

    assert sorted(result.created) == ["a", "b"]
    warnings = [r for r in caplog.records if "unused import 'fs'" in r.getMessage()]
    assert len(warnings) == 1
    assert warnings[0].levelno == logging.WARNING


def test_bundler_errors_are_not_fatal(target: Path, make_options, caplog: pytest.LogCaptureFixture):
    write_info(target, "a.js")
    bundler = FakeBundler(errors=["a: cannot resolve 'left-pad'"])

    with caplog.at_level(logging.ERROR):
        result = asyncio.run(PackagePipeline(make_options(), bundler=bundler, build_step=FakeBuildStep()).run())

    assert result.created == ["a"]
    assert [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR] == ["a: cannot resolve 'left-pad'"]


def test_one_failed_archive_does_not_affect_siblings(target: Path, make_options):
    for name in ("a", "b", "c"):
        write_info(target, f"{name}.js")
    c_before = (target / "c.info.json").read_text(encoding="utf-8")
    events, seen = _events()
    pipeline = PackagePipeline(
        make_options(), bundler=FakeBundler(skip={"c"}), build_step=FakeBuildStep(), events=events
    )

    with pytest.raises(PackagingError) as excinfo:
        asyncio.run(pipeline.run())

    assert set(excinfo.value.failures) == {"c"}
    assert sorted(d.script_name for d in seen["created"]) == ["a", "b"]
    assert not (target / "c.zip").exists()
    assert "archiveSize" not in _read_info(target / "c.info.json")
    assert (target / "c.info.json").read_text(encoding="utf-8") == c_before
    for name in ("a", "b"):
        assert _read_info(target / f"{name}.info.json")["archiveSize"] > 0


def test_up_to_date_run_is_a_noop(target: Path, make_options, caplog: pytest.LogCaptureFixture):
    zip_a = target / "a.zip"
    zip_a.write_bytes(b"kept")
    write_info(target, "a.js", zipFile=str(zip_a))
    before = sorted(p.name for p in target.iterdir())
    bundler = FakeBundler()
    progress = RecordingProgress()

    with caplog.at_level(logging.WARNING):
        result = asyncio.run(
            PackagePipeline(
                make_options(only_modified=True), bundler=bundler, build_step=FakeBuildStep(), progress=progress
            ).run()
        )

    assert bundler.requests == []
    assert result.created == []
    assert sorted(p.name for p in target.iterdir()) == before
    assert zip_a.read_bytes() == b"kept"
    assert progress.total is None
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


def test_empty_target_does_not_bundle(target: Path, make_options):
    bundler = FakeBundler()
    result = asyncio.run(PackagePipeline(make_options(), bundler=bundler, build_step=FakeBuildStep()).run())
    assert bundler.requests == []
    assert result.created == [] and result.ignored == []


def test_build_runs_before_descriptors_are_loaded(target: Path, make_options):
    class WritingBuildStep(FakeBuildStep):
        def run(self, target_dir, files):
            super().run(target_dir, files)
            write_info(target_dir, "late.js")

    build = WritingBuildStep()
    result = asyncio.run(
        PackagePipeline(make_options(files=["src/late.htl"]), bundler=FakeBundler(), build_step=build).run()
    )

    assert build.calls == [(target, ["src/late.htl"])]
    assert result.created == ["late"]


def test_build_failure_stops_the_run(target: Path, make_options):
    write_info(target, "a.js")
    bundler = FakeBundler()
    pipeline = PackagePipeline(make_options(), bundler=bundler, build_step=FakeBuildStep(BuildError("boom")))

    with pytest.raises(BuildError):
        asyncio.run(pipeline.run())
    assert bundler.requests == []
    assert not (target / "a.zip").exists()


def test_progress_accounting(target: Path, make_options):
    write_info(target, "a.js")
    write_info(target, "b.js")
    progress = RecordingProgress()

    asyncio.run(
        PackagePipeline(make_options(), bundler=FakeBundler(), build_step=FakeBuildStep(), progress=progress).run()
    )

    assert progress.total == 2 * 10
    assert max(fraction for fraction, _, _ in progress.updates) == pytest.approx(0.8)
    assert len(progress.ticks) == 4
    assert progress.stopped


def test_nested_scripts_keep_their_directory(target: Path, make_options):
    info = write_info(target, "html/html.js")
    bundler = FakeBundler()

    asyncio.run(PackagePipeline(make_options(), bundler=bundler, build_step=FakeBuildStep()).run())

    assert (target / "html.bundle.js").exists()
    assert (target / "html" / "html.zip").exists()
    assert bundler.requests[0].entries["html"] == (target / "html" / "html.js").resolve()
    assert _read_info(info)["dirname"] == "html"


def test_duplicate_script_names_are_rejected(target: Path):
    descriptors = [ScriptDescriptor(main="x/a.js"), ScriptDescriptor(main="y/a.js")]
    with pytest.raises(DescriptorError, match="a"):
        derive_descriptors(descriptors, target)


def test_failed_script_drops_recorded_archive(target: Path, make_options):
    write_info(target, "a.js")
    old_zip = target / "c.zip"
    old_zip.write_bytes(b"old")
    c_info = write_info(target, "c.js", requires=["a.js"], zipFile=str(old_zip), archiveSize=3)
    pipeline = PackagePipeline(make_options(), bundler=FakeBundler(skip={"c"}), build_step=FakeBuildStep())

    with pytest.raises(PackagingError) as excinfo:
        asyncio.run(pipeline.run())

    assert set(excinfo.value.failures) == {"c"}
    assert not old_zip.exists()
    data = _read_info(c_info)
    assert "archiveSize" not in data
    assert "zipFile" not in data
    assert data["main"] == "c.js"
    assert data["requires"] == ["a.js"]
    assert _read_info(target / "a.info.json")["archiveSize"] > 0
