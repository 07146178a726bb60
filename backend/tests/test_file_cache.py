"""
Tests for File Cache.

Requires Python 3.11+.
"""

from pathlib import Path

import pytest

from fscache.file_cache import FileCache


class TestFileCache:
    """Test cases for FileCache."""

    @pytest.fixture
    def cache(self) -> FileCache:
        """Create an empty file cache."""
        return FileCache()

    async def test_read_file_caches(self, cache: FileCache, temp_project: Path):
        path = temp_project / "src" / "index.html"

        assert await cache.read_file(str(path)) == "<html></html>\n"
        path.write_text("<html>changed</html>\n")

        assert await cache.read_file(str(path)) == "<html></html>\n"
        assert await cache.read_file(str(path), use_cache=False) == "<html>changed</html>\n"
        assert await cache.read_file(str(path)) == "<html>changed</html>\n"

    async def test_has_file_changed(self, cache: FileCache, temp_project: Path):
        path = temp_project / "src" / "components" / "a.ts"

        # Never seen before
        assert await cache.has_file_changed(str(path))
        # Same bytes
        assert not await cache.has_file_changed(str(path))

        path.write_text("export const a = 1;\n")
        assert not await cache.has_file_changed(str(path))

        path.write_text("export const a = 2;\n")
        assert await cache.has_file_changed(str(path))
        assert await cache.read_file(str(path)) == "export const a = 2;\n"

    async def test_has_file_changed_after_warm_read(self, cache: FileCache, temp_project: Path):
        path = temp_project / "src" / "components" / "a.ts"
        await cache.read_file(str(path), use_cache=False)

        assert not await cache.has_file_changed(str(path))

    async def test_deleted_file(self, cache: FileCache, temp_project: Path):
        path = temp_project / "src" / "components" / "a.ts"
        await cache.read_file(str(path))
        path.unlink()

        assert await cache.has_file_changed(str(path))
        assert not await cache.has_file_changed(str(path))

    async def test_read_missing_file_raises(self, cache: FileCache, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            await cache.read_file(str(tmp_path / "missing.ts"))

    async def test_clear_file_cache(self, cache: FileCache, temp_project: Path):
        path = temp_project / "src" / "index.html"
        await cache.read_file(str(path))
        path.write_text("<p></p>\n")

        cache.clear_file_cache(str(path))

        assert await cache.read_file(str(path)) == "<p></p>\n"

    async def test_readdir_recursive(self, cache: FileCache, temp_project: Path):
        components = temp_project / "src" / "components"

        files = await cache.readdir(str(components), recursive=True)

        assert files == [
            (components / "a.ts").as_posix(),
            (components / "sub" / "b.css").as_posix(),
        ]

    async def test_readdir_flat(self, cache: FileCache, temp_project: Path):
        components = temp_project / "src" / "components"

        files = await cache.readdir(str(components), recursive=False)

        assert files == [(components / "a.ts").as_posix()]

    async def test_readdir_missing_dir(self, cache: FileCache, tmp_path: Path):
        with pytest.raises(NotADirectoryError):
            await cache.readdir(str(tmp_path / "nope"))

    async def test_clear_dir_cache_refreshes_listing(
        self, cache: FileCache, temp_project: Path
    ):
        src = temp_project / "src"
        before = await cache.readdir(str(src))
        await cache.read_file(str(src / "components" / "a.ts"))

        (src / "components" / "c.tsx").write_text("export {};\n")
        assert await cache.readdir(str(src)) == before

        cache.clear_dir_cache(str(src / "components"))

        after = await cache.readdir(str(src))
        assert (src / "components" / "c.tsx").as_posix() in after
        assert cache.get_cache_stats()["cached_files"] == 0

    async def test_clear_file_cache_drops_parent_listings(
        self, cache: FileCache, temp_project: Path
    ):
        src = temp_project / "src"
        await cache.readdir(str(src))
        (src / "components" / "a.ts").unlink()

        cache.clear_file_cache(str(src / "components" / "a.ts"))

        assert (src / "components" / "a.ts").as_posix() not in await cache.readdir(str(src))
