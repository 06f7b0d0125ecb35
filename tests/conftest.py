"""Root test configuration: shared posts-directory fixtures"""

from pathlib import Path

import pytest

from mdsite.config import Settings


@pytest.fixture(name="posts_dir")
def posts_dir_fixture(tmp_path) -> Path:
    d = tmp_path / "_posts"
    d.mkdir()
    return d


@pytest.fixture(name="write_post")
def write_post_fixture(posts_dir):
    """Factory: write_post('2012-01-28-hello.md', text) -> Path."""
    def _write(name: str, text: str) -> Path:
        path = posts_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture(name="settings")
def settings_fixture(tmp_path, posts_dir) -> Settings:
    return Settings(
        posts_dir=str(posts_dir),
        output_dir=str(tmp_path / "_site"),
        layouts_dir=str(tmp_path / "_layouts"),
        workers=2,
    )
