# tests/test_cli.py

from pathlib import Path

from typer.testing import CliRunner

from cli import app

runner = CliRunner()


def test_check_link_allowed(files_dir: Path):
    result = runner.invoke(app, ["check-link", "test/test.html", "--root-dir", str(files_dir), "-a", "**/test.html"])
    assert result.exit_code == 0
    assert result.stdout.splitlines()[-1] == str(files_dir / "test" / "test.html")


def test_check_link_denied(files_dir: Path):
    result = runner.invoke(app, ["check-link", "secret.txt", "--root-dir", str(files_dir), "-a", "**/test.html"])
    assert result.exit_code == 1


def test_expand_from_disk(tmp_path: Path, files_dir: Path, data_dir: Path):
    template = tmp_path / "template.html"
    template.write_text("<p>{#asset test/test.html @encoding=base64}</p>", encoding="utf-8")

    result = runner.invoke(app, [
        "expand", str(template),
        "--data-dir", str(data_dir),
        "--root-dir", str(files_dir),
        "-a", "**/test.html",
        "--disk",
    ])
    assert result.exit_code == 0
    assert result.stdout.endswith("<p>aGVsbG8=</p>")


def test_expand_unknown_asset_fails(tmp_path: Path, files_dir: Path, data_dir: Path):
    template = tmp_path / "template.html"
    template.write_text("{#asset nope.html}", encoding="utf-8")

    result = runner.invoke(app, ["expand", str(template), "--data-dir", str(data_dir), "--root-dir", str(files_dir)])
    assert result.exit_code == 1
