from __future__ import annotations

from pathlib import Path

from qpm.__main__ import build_parser, main


def test_parser_accepts_project_dir_and_logging_flags(tmp_path: Path) -> None:
    args = build_parser().parse_args(
        ["--project-dir", str(tmp_path), "-v", "--log-level", "WARNING", "--log-file", "qpm.log"]
    )
    assert args.project_dir == tmp_path
    assert args.verbose is True
    assert args.log_level == "WARNING"
    assert args.log_file == Path("qpm.log")


def test_missing_project_dir_returns_error(tmp_path: Path, capsys) -> None:
    code = main(["--project-dir", str(tmp_path / "nope")])
    assert code == 1
    assert "project directory not found" in capsys.readouterr().err


def test_unreadable_configuration_returns_error(tmp_path: Path, capsys) -> None:
    (tmp_path / "quartz.config.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    code = main(["--project-dir", str(tmp_path)])
    assert code == 1
    assert "could not read configuration" in capsys.readouterr().err


def test_main_launches_tui_with_loaded_store(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "quartz.config.yaml").write_text(
        "configuration:\n  pageTitle: Site\nplugins: []\nlayout: {}\n",
        encoding="utf-8",
    )
    launched = {}

    def _fake_run_tui(paths, store=None):
        launched["root"] = paths.root
        launched["document"] = store.document
        return 0

    monkeypatch.setattr("qpm.ui.tui.app.run_tui", _fake_run_tui)

    assert main(["--project-dir", str(tmp_path)]) == 0
    assert launched["root"] == tmp_path.resolve()
    assert launched["document"]["configuration"]["pageTitle"] == "Site"


def test_keyboard_interrupt_exit_code(tmp_path: Path, monkeypatch) -> None:
    def _interrupt(paths, store=None):
        raise KeyboardInterrupt

    monkeypatch.setattr("qpm.ui.tui.app.run_tui", _interrupt)
    assert main(["--project-dir", str(tmp_path)]) == 130
