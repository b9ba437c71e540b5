"""Tests for library, upload, evaluate, preview, apply and stats commands."""

import json
from pathlib import Path

import pytest

from media_rules.__main__ import cli, main
from media_rules.library.repository import LibraryRepository


def _media(directory: Path, *names: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_bytes(b"\0" * 64)
    return directory


@pytest.fixture
def configured(cli_runner) -> None:
    assert cli_runner.invoke(cli, ["folders", "add", "Photos"]).exit_code == 0
    result = cli_runner.invoke(
        cli,
        [
            "rules",
            "add",
            "--name",
            "Images",
            "--folder",
            "1",
            "--condition",
            "type=mime_type;value=image/*",
        ],
    )
    assert result.exit_code == 0, result.output


def test_library_add_directory(cli_runner, data_root: Path, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg", "b.mp4", ".hidden.jpg")

    result = cli_runner.invoke(cli, ["library", "add", str(media), "--author", "4"])

    assert result.exit_code == 0, result.output
    assert "Added 2 item(s)" in result.output
    items = LibraryRepository(data_root).list_items()
    assert [item.filename for item in items] == ["a.jpg", "b.mp4"]
    assert items[0].author_id == 4


def test_library_list(cli_runner, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg")
    cli_runner.invoke(cli, ["library", "add", str(media)])

    result = cli_runner.invoke(cli, ["library", "list", "--unassigned"])

    assert result.exit_code == 0
    assert "a.jpg" in result.output


def test_library_unassign_and_remove(cli_runner, configured, data_root: Path, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg")
    cli_runner.invoke(cli, ["library", "add", str(media)])
    cli_runner.invoke(cli, ["apply"])
    assert LibraryRepository(data_root).folder_of(1) == 1

    unassigned = cli_runner.invoke(cli, ["library", "unassign", "1"])
    assert unassigned.exit_code == 0
    assert "no longer in a folder" in unassigned.output
    assert LibraryRepository(data_root).folder_of(1) is None

    removed = cli_runner.invoke(cli, ["library", "remove", "1"])
    assert removed.exit_code == 0
    assert LibraryRepository(data_root).list_items() == []

    missing = cli_runner.invoke(cli, ["library", "remove", "1"])
    assert missing.exit_code != 0
    assert "Media item not found" in missing.output


def test_library_list_empty(cli_runner) -> None:
    result = cli_runner.invoke(cli, ["library", "list"])
    assert result.exit_code == 0
    assert "No media items" in result.output


def test_upload_assigns_folder(cli_runner, configured, data_root: Path, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "IMG_1.jpg")

    result = cli_runner.invoke(cli, ["upload", str(media / "IMG_1.jpg")])

    assert result.exit_code == 0, result.output
    assert "matches" in result.output
    assert LibraryRepository(data_root).folder_of(1) == 1


def test_upload_without_match(cli_runner, configured, data_root: Path, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "clip.mp4")

    result = cli_runner.invoke(cli, ["upload", str(media / "clip.mp4")])

    assert result.exit_code == 0
    assert "no rule matched" in result.output
    assert LibraryRepository(data_root).folder_of(1) is None


def test_evaluate(cli_runner, configured, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg", "b.mp4")
    cli_runner.invoke(cli, ["library", "add", str(media)])

    matched = cli_runner.invoke(cli, ["evaluate", "1"])
    unmatched = cli_runner.invoke(cli, ["evaluate", "2"])
    missing = cli_runner.invoke(cli, ["evaluate", "9"])

    assert matched.exit_code == 0 and "matches" in matched.output
    assert unmatched.exit_code == 0 and "no rule matched" in unmatched.output
    assert missing.exit_code != 0 and "Media item not found" in missing.output


def test_preview_json_does_not_assign(cli_runner, configured, data_root: Path, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg", "b.mp4", "c.png")
    cli_runner.invoke(cli, ["library", "add", str(media)])

    result = cli_runner.invoke(cli, ["preview", "--json", "--limit", "2"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["total"] == 2
    assert payload["has_more"] is True
    assert [item["status"] for item in payload["items"]] == ["will_assign", "no_match"]
    assert LibraryRepository(data_root).counts() == (3, 0)

    rest = json.loads(cli_runner.invoke(cli, ["preview", "--json", "--offset", "2"]).stdout)
    assert [item["attachment_id"] for item in rest["items"]] == [3]


def test_preview_table(cli_runner, configured, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg")
    cli_runner.invoke(cli, ["library", "add", str(media)])

    result = cli_runner.invoke(cli, ["preview", "--mime-type", "image"])

    assert result.exit_code == 0
    assert "will_assign" in result.output


def test_apply_and_stats(cli_runner, configured, data_root: Path, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg", "b.mp4")
    cli_runner.invoke(cli, ["library", "add", str(media)])

    applied = cli_runner.invoke(cli, ["apply", "--json"])

    assert applied.exit_code == 0, applied.output
    payload = json.loads(applied.stdout)
    assert (payload["assigned"], payload["skipped"], payload["errors"]) == (1, 1, 0)
    assert LibraryRepository(data_root).folder_of(1) == 1

    stats = cli_runner.invoke(cli, ["stats"])
    assert stats.exit_code == 0
    assert "1 enabled / 1 total" in stats.output

    raw = json.loads(cli_runner.invoke(cli, ["stats", "--json"]).stdout)
    assert raw == {
        "total": 2,
        "assigned": 1,
        "unassigned": 1,
        "folders": 1,
        "rules": 1,
        "rules_enabled": 1,
    }


def test_apply_selected_items(cli_runner, configured, data_root: Path, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg", "b.jpg")
    cli_runner.invoke(cli, ["library", "add", str(media)])

    result = cli_runner.invoke(cli, ["apply", "--item", "2", "--details"])

    assert result.exit_code == 0
    library = LibraryRepository(data_root)
    assert library.folder_of(1) is None
    assert library.folder_of(2) == 1


def test_apply_with_errors_exits_nonzero(cli_runner, configured, tmp_path: Path) -> None:
    media = _media(tmp_path / "media", "a.jpg")
    cli_runner.invoke(cli, ["library", "add", str(media)])
    library = LibraryRepository(Path.home() / ".config" / "media-rules")
    library.remove_folder(1)

    result = cli_runner.invoke(cli, ["apply"])

    assert result.exit_code == 1
    assert "Failed to assign folder" in result.output


def test_main_returns_exit_codes(monkeypatch, configured) -> None:
    monkeypatch.setattr("sys.argv", ["media-rules", "stats"])
    assert main() == 0

    monkeypatch.setattr("sys.argv", ["media-rules", "rules", "show", "rule_nope"])
    assert main() == 2
