from pathlib import Path
from .conftest import run_cli, load_json, assert_exit, assert_file


def test_dir_mode_reports_and_fails_on_critical(dataset_dir: Path, out_dir: Path):
    proc = run_cli(["dir", dataset_dir, "--out", out_dir, "--no-progress"])
    assert_exit(proc, 1)
    assert "Scan Summary" in proc.stdout

    report = load_json(assert_file(out_dir / "report.json"))
    assert report["files_scanned"] == 3
    assert report["summary"]["critical"] == 2
    assert report["findings"][0]["severity"] == "critical"
    files = {f["file_location"] for f in report["findings"]}
    assert files == {"client/main.lua", "server/main.lua"}
    assert_file(out_dir / "report.md")
    assert_file(out_dir / "summary.md")


def test_dir_mode_fail_on_none(dataset_dir: Path):
    proc = run_cli(["dir", dataset_dir, "--fail-on", "none", "--no-progress"])
    assert_exit(proc, 0)


def test_dir_mode_category_selection(dataset_dir: Path, out_dir: Path):
    proc = run_cli(["dir", dataset_dir, "--category", "nuiExploitation", "--out", out_dir, "--no-progress"])
    assert_exit(proc, 0)
    report = load_json(out_dir / "report.json")
    assert report["by_category"] == {"nuiExploitation": 2}


def test_dir_mode_is_deterministic(dataset_dir: Path, tmp_path: Path):
    first, second = tmp_path / "a", tmp_path / "b"
    for out in (first, second):
        run_cli(["dir", dataset_dir, "--out", out, "--workers", "4", "--no-progress"])
    assert (first / "report.json").read_text() == (second / "report.json").read_text()


def test_binary_file_does_not_crash(dataset_dir: Path, out_dir: Path):
    (dataset_dir / "compiled.lua").write_bytes(b"\x1bLua" + bytes(range(256)))
    proc = run_cli(["dir", dataset_dir, "--out", out_dir, "--no-progress", "--fail-on", "none"])
    assert_exit(proc, 0)
    assert load_json(out_dir / "report.json")["files_scanned"] == 3


def test_missing_directory(tmp_path: Path):
    proc = run_cli(["dir", tmp_path / "nope"])
    assert_exit(proc, 2)
