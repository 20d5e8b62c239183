from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pytest

from scriptpack.core.packaging.bundler import BundleRequest, BundleResult, bundle_file_name
from scriptpack.core.packaging.package_executor import EffectivePackageOptions
from scriptpack.models import ScriptDescriptor


class FakeBundler:
    """Writes ``<name>.bundle.js`` for every entry except those in *skip*."""

    def __init__(
        self,
        errors: Iterable[str] = (),
        warnings: Iterable[str] = (),
        skip: Iterable[str] = (),
    ) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings)
        self.skip = set(skip)
        self.requests: List[BundleRequest] = []

    def bundle(self, request: BundleRequest) -> BundleResult:
        self.requests.append(request)
        total = len(request.entries)
        for index, (name, entry) in enumerate(request.entries.items()):
            request.report(index / total, "building", name)
            if name in self.skip:
                continue
            out = Path(request.directory) / bundle_file_name(name)
            out.write_text(f"/* bundle of {name} from {Path(entry).name} */\n", encoding="utf-8")
        request.report(1.0, "emitting")
        return BundleResult(errors=list(self.errors), warnings=list(self.warnings))


class FakeBuildStep:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: List[tuple] = []

    def run(self, target: Path, files) -> None:
        self.calls.append((target, list(files)))
        if self.error is not None:
            raise self.error


class RecordingProgress:
    def __init__(self) -> None:
        self.total: Optional[int] = None
        self.updates: List[tuple] = []
        self.ticks: List[str] = []
        self.stopped = False

    def start(self, total: int) -> None:
        self.total = total

    def update(self, fraction: float, label: str, *, force: bool = False) -> None:
        self.updates.append((fraction, label, force))

    def tick(self, label: str) -> None:
        self.ticks.append(label)

    def stop(self) -> None:
        self.stopped = True


def write_info(target: Path, main: str, **fields: Any) -> Path:
    """Write ``<dirname>/<name>.info.json`` plus the entry script, as a build would."""
    descriptor = ScriptDescriptor(main=main, **fields)
    name = descriptor.script_name
    dirname = Path(main).parent
    info = target / dirname / f"{name}.info.json"
    info.parent.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = {"main": main}
    data.update({k: v for k, v in descriptor.to_json_dict().items() if k != "main"})
    info.write_text(json.dumps(data, indent=2), encoding="utf-8")
    (target / main).parent.mkdir(parents=True, exist_ok=True)
    (target / main).write_text(f"module.exports.main = () => '{name}';\n", encoding="utf-8")
    return info


@pytest.fixture()
def target(tmp_path: Path) -> Path:
    path = tmp_path / "build"
    path.mkdir()
    return path


@pytest.fixture()
def make_options(tmp_path: Path, target: Path):
    def factory(**overrides: Any) -> EffectivePackageOptions:
        values: Dict[str, Any] = {"directory": tmp_path, "target": target}
        values.update(overrides)
        return EffectivePackageOptions(**values)

    return factory
