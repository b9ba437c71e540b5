import logging
import sys
from pathlib import Path
from typing import Any, Callable

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()

from media_rules.library.repository import LibraryRepository  # noqa: E402
from media_rules.models import ImageMeta, ItemMetadata  # noqa: E402
from media_rules.rules.repository import RulesRepository  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("MEDIA_RULES_HOME", raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # CLI runs attach a handler and stop propagation; undo that for caplog.
    logger = logging.getLogger("media_rules")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    return tmp_path / ".config" / "media-rules"


@pytest.fixture
def rules_repo(data_root: Path) -> RulesRepository:
    return RulesRepository(data_root)


@pytest.fixture
def library(data_root: Path) -> LibraryRepository:
    return LibraryRepository(data_root)


@pytest.fixture
def make_item() -> Callable[..., ItemMetadata]:
    def _make(
        item_id: int = 1,
        filename: str = "photo.jpg",
        mime_type: str = "image/jpeg",
        camera: str = "",
        created: int = 0,
        keywords: tuple[str, ...] = (),
        **kwargs: Any,
    ) -> ItemMetadata:
        return ItemMetadata(
            item_id=item_id,
            filename=filename,
            mime_type=mime_type,
            image_meta=ImageMeta(camera=camera, created_timestamp=created, keywords=keywords),
            **kwargs,
        )

    return _make


@pytest.fixture
def add_item(library: LibraryRepository) -> Callable[..., ItemMetadata]:
    def _add(filename: str, mime_type: str = "image/jpeg", **fields: Any) -> ItemMetadata:
        return library.add_item({"filename": filename, "mime_type": mime_type, **fields})

    return _add


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(self, cli: Any, args: Any = None, **kwargs: Any):  # type: ignore[override]
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()
