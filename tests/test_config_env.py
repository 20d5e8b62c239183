from pathlib import Path

from scriptpack.common.config import load_config
from scriptpack.core.packaging.package_executor import PackageOptions, resolve_options


def test_load_config_reads_yaml(tmp_path, monkeypatch):
    cfg_file = tmp_path / "config.yml"
    cfg_file.write_text("packaging:\n  target: out\n  minify: true\n", encoding="utf-8")
    monkeypatch.delenv("SCRIPTPACK_TARGET", raising=False)

    cfg = load_config(cfg_file)

    assert cfg.packaging["target"] == "out"
    assert cfg["packaging"]["minify"] is True


def test_environment_overrides(tmp_path, monkeypatch):
    cfg_file = tmp_path / "conf.yml"
    cfg_file.write_text("packaging:\n  only_modified: false\n  target: out\n", encoding="utf-8")

    monkeypatch.setenv("SCRIPTPACK_ONLY_MODIFIED", "yes")
    monkeypatch.setenv("SCRIPTPACK_TARGET", "dist")
    monkeypatch.setenv("SCRIPTPACK_BUNDLER", "/opt/esbuild")
    monkeypatch.setenv("SCRIPTPACK_LOG_LEVEL", "debug")

    cfg = load_config(cfg_file)

    assert cfg["packaging"]["only_modified"] is True
    assert cfg["packaging"]["target"] == "dist"
    assert cfg["bundler"]["executable"] == "/opt/esbuild"
    assert cfg["logging"]["level"] == "DEBUG"


def test_missing_config_file_is_empty(tmp_path, monkeypatch):
    for key in ("SCRIPTPACK_TARGET", "SCRIPTPACK_ONLY_MODIFIED", "SCRIPTPACK_MINIFY",
                "SCRIPTPACK_BUILD_COMMAND", "SCRIPTPACK_BUNDLER", "SCRIPTPACK_LOG_LEVEL", "SCRIPTPACK_LOG_FILE"):
        monkeypatch.delenv(key, raising=False)
    assert load_config(tmp_path / "absent.yml") == {}


def test_cli_options_win_over_config(tmp_path, monkeypatch):
    cfg_file = tmp_path / "c.yml"
    cfg_file.write_text(
        "logging:\n  level: INFO\npackaging:\n  target: out\n  only_modified: true\n  minify: true\n",
        encoding="utf-8",
    )
    monkeypatch.delenv("SCRIPTPACK_TARGET", raising=False)
    monkeypatch.delenv("SCRIPTPACK_ONLY_MODIFIED", raising=False)
    monkeypatch.delenv("SCRIPTPACK_MINIFY", raising=False)
    monkeypatch.delenv("SCRIPTPACK_LOG_LEVEL", raising=False)
    cfg = load_config(cfg_file)

    defaults = resolve_options(cfg, PackageOptions(directory=tmp_path))
    assert defaults.target == (tmp_path / "out").resolve()
    assert defaults.only_modified is True
    assert defaults.minify is True
    assert defaults.log_level == "INFO"
    assert defaults.module_paths[0] == "node_modules"

    explicit = resolve_options(
        cfg, PackageOptions(directory=tmp_path, target="other", only_modified=False, debug=True)
    )
    assert explicit.target == Path(tmp_path / "other").resolve()
    assert explicit.only_modified is False
    assert explicit.log_level == "DEBUG"
