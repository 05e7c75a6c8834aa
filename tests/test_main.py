"""Tests for the command line entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from projclean.main import build_config, main, parse_args


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point the default config location at an empty directory."""
    config_home = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home


class TestParseArgs:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        args = parse_args([])

        assert args.rules == []
        assert args.cwd == Path(".")
        assert args.exclude is None
        assert not args.force
        assert not args.print_only

    def test_all_options(self) -> None:
        args = parse_args(
            ["-C", "/src", "-x", ".git", "-x", "vendor", "-t", "+30", "-s", "+1M", "-w", "2", "-f", "node_modules"]
        )

        assert args.cwd == Path("/src")
        assert args.exclude == [".git", "vendor"]
        assert args.time == "+30"
        assert args.size == "+1M"
        assert args.workers == 2
        assert args.force
        assert args.rules == ["node_modules"]

    def test_force_and_print_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["-f", "-p", "node_modules"])


class TestBuildConfig:
    """Tests for merging the config file with the command line."""

    def test_command_line_overrides_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("rules: [node_modules]\nexclude: [.git]\ntime: '+30'\n")

        config = build_config(parse_args(["-c", str(config_file), "-t", "-7", "target"]))

        assert config.rules == ["target"]
        assert config.exclude == [".git"]
        assert config.time == "-7"

    def test_rules_from_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("rules: [node_modules]\n")

        assert build_config(parse_args(["-c", str(config_file)])).rules == ["node_modules"]

    def test_verbose_sets_debug(self) -> None:
        assert build_config(parse_args(["-v", "x"])).log_level == "DEBUG"


class TestMain:
    """Tests for main()."""

    def test_print_mode(self, project_tree: Path, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["-p", "-C", str(project_tree), "target@Cargo.toml"])

        assert code == 0
        assert capsys.readouterr().out.splitlines() == [str(project_tree.resolve() / "cargo" / "target")]

    def test_force_mode_deletes(self, project_tree: Path) -> None:
        code = main(["-f", "-C", str(project_tree), "node_modules"])

        assert code == 0
        assert not (project_tree / "nodejs" / "node_modules").exists()
        assert (project_tree / "nodejs" / "package.json").exists()

    def test_no_rules(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "No rules given" in capsys.readouterr().err

    def test_invalid_rule(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-p", "-C", str(tmp_path), "target@"]) == 1
        assert "Invalid rule" in capsys.readouterr().err

    def test_invalid_filter(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-p", "-C", str(tmp_path), "-s", "huge", "node_modules"]) == 1
        assert "Invalid size value" in capsys.readouterr().err

    def test_invalid_start_path(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-p", "-C", str(tmp_path / "missing"), "node_modules"]) == 1
        assert capsys.readouterr().out == ""

    def test_invalid_config(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("workers: 0\n")

        assert main(["-c", str(config_file), "-p", "node_modules"]) == 1

    def test_unwritable_log_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A log file that cannot be created is reported, not raised."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f"logging:\n  file: {blocker / 'projclean.log'}\n")

        assert main(["-c", str(config_file), "-p", "-C", str(tmp_path), "node_modules"]) == 1
        assert "Errno" in capsys.readouterr().err

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert "projclean" in capsys.readouterr().out
