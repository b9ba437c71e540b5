"""Tests for LibraryRepository."""

import json
from pathlib import Path

import pytest

from media_rules.errors import FolderNotFoundError, InvalidJsonFormatError
from media_rules.library.repository import LibraryRepository, mime_filter_matches


def test_empty_library(library: LibraryRepository) -> None:
    assert library.list_items() == []
    assert library.list_folders() == []
    assert library.counts() == (0, 0)
    assert not library.library_path.exists()


def test_add_item_assigns_sequential_ids(library: LibraryRepository, add_item) -> None:
    first = add_item("a.jpg")
    second = add_item("b.png", "image/png", width=10, height=20)

    assert (first.item_id, second.item_id) == (1, 2)
    assert library.get_metadata(2).width == 10
    assert library.get_metadata(99) is None


def test_state_survives_reload(data_root: Path, add_item, library: LibraryRepository) -> None:
    add_item("a.jpg")
    folder = library.add_folder("Photos")
    library.assign(1, folder.id)

    fresh = LibraryRepository(data_root)

    assert [item.filename for item in fresh.list_items()] == ["a.jpg"]
    assert fresh.folder_of(1) == folder.id
    assert fresh.add_folder("More").id == folder.id + 1


def test_add_folder_rejects_blank_name(library: LibraryRepository) -> None:
    with pytest.raises(ValueError):
        library.add_folder("   ")


def test_assign_is_idempotent(library: LibraryRepository, add_item) -> None:
    add_item("a.jpg")
    folder = library.add_folder("Photos")

    assert library.assign(1, folder.id) is True
    assert library.assign(1, folder.id) is True
    assert library.counts() == (1, 1)


def test_assign_to_missing_folder_fails(library: LibraryRepository, add_item) -> None:
    add_item("a.jpg")

    assert library.assign(1, 42) is False
    assert library.folder_of(1) is None


def test_assign_missing_item_fails(library: LibraryRepository) -> None:
    folder = library.add_folder("Photos")
    assert library.assign(7, folder.id) is False


def test_unassign(library: LibraryRepository, add_item) -> None:
    add_item("a.jpg")
    folder = library.add_folder("Photos")
    library.assign(1, folder.id)

    assert library.unassign(1) is True
    assert library.unassign(1) is False
    assert library.folder_of(1) is None


def test_remove_folder_clears_assignments(library: LibraryRepository, add_item) -> None:
    add_item("a.jpg")
    keep = library.add_folder("Keep")
    drop = library.add_folder("Drop")
    library.assign(1, drop.id)

    assert library.remove_folder(drop.id) is True
    assert library.remove_folder(drop.id) is False
    assert library.folder_of(1) is None
    assert [folder.name for folder in library.list_folders()] == [keep.name]


def test_require_folder(library: LibraryRepository) -> None:
    folder = library.add_folder("Photos")

    assert library.require_folder(folder.id) == folder
    with pytest.raises(FolderNotFoundError):
        library.require_folder(folder.id + 1)


def test_remove_item_drops_assignment(library: LibraryRepository, add_item) -> None:
    add_item("a.jpg")
    folder = library.add_folder("Photos")
    library.assign(1, folder.id)

    assert library.remove_item(1) is True
    assert library.remove_item(1) is False
    assert library.counts() == (0, 0)


def test_list_item_ids_filters(library: LibraryRepository, add_item) -> None:
    add_item("a.jpg", "image/jpeg")
    add_item("b.mp4", "video/mp4")
    add_item("c.png", "image/png")
    folder = library.add_folder("Photos")
    library.assign(3, folder.id)

    assert library.list_item_ids() == [1, 2, 3]
    assert library.list_item_ids(unassigned_only=True) == [1, 2]
    assert library.list_item_ids(mime_type="image") == [1, 3]
    assert library.list_item_ids(unassigned_only=True, mime_type="image/*") == [1]
    assert library.list_item_ids(item_ids=[3, 2, 99]) == [2, 3]


@pytest.mark.parametrize(
    ("mime_type", "mime_filter", "expected"),
    [
        ("image/png", "image", True),
        ("image/png", "image/*", True),
        ("image/png", "image/png", True),
        ("image/png", "video, image/png", True),
        ("video/mp4", "image", False),
        ("image/png", " , ", False),
    ],
)
def test_mime_filter_matches(mime_type: str, mime_filter: str, expected: bool) -> None:
    assert mime_filter_matches(mime_type, mime_filter) is expected


def test_invalid_library_file(data_root: Path) -> None:
    data_root.mkdir(parents=True)
    (data_root / "library.json").write_text("{broken", encoding="utf-8")

    with pytest.raises(InvalidJsonFormatError):
        LibraryRepository(data_root).list_items()


def test_library_file_layout(data_root: Path, library: LibraryRepository, add_item) -> None:
    add_item("a.jpg")
    library.add_folder("Photos")
    library.assign(1, 1)

    payload = json.loads((data_root / "library.json").read_text(encoding="utf-8"))

    assert payload["assignments"] == {"1": 1}
    assert payload["items"][0]["id"] == 1
    assert payload["folders"] == [{"id": 1, "name": "Photos"}]


def test_batch_writes_once_on_exit(
    data_root: Path, library: LibraryRepository, add_item, monkeypatch
) -> None:
    for index in range(5):
        add_item(f"{index}.jpg")
    folder = library.add_folder("Photos")
    writes = []
    real_flush = LibraryRepository.flush

    def counting_flush(self) -> None:
        writes.append(1)
        real_flush(self)

    monkeypatch.setattr(LibraryRepository, "flush", counting_flush)

    with library.batch():
        for item_id in range(1, 6):
            assert library.assign(item_id, folder.id)
        with library.batch():
            library.unassign(5)
        assert writes == []
        assert LibraryRepository(data_root).folder_of(1) is None

    assert writes == [1]
    fresh = LibraryRepository(data_root)
    assert [fresh.folder_of(item_id) for item_id in range(1, 6)] == [1, 1, 1, 1, None]


def test_batch_flushes_when_block_raises(data_root: Path, library: LibraryRepository, add_item) -> None:
    add_item("a.jpg")
    folder = library.add_folder("Photos")

    with pytest.raises(RuntimeError):
        with library.batch():
            library.assign(1, folder.id)
            raise RuntimeError("boom")

    assert LibraryRepository(data_root).folder_of(1) == folder.id


def test_lookups_follow_changes(library: LibraryRepository, add_item) -> None:
    add_item("a.jpg")
    folder = library.add_folder("Photos")
    library.remove_item(1)
    library.remove_folder(folder.id)

    assert library.get_metadata(1) is None
    assert library.get_folder(folder.id) is None
    assert library.assign(1, folder.id) is False
