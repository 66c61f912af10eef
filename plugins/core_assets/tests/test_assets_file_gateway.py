# plugins/core_assets/tests/test_assets_file_gateway.py

import codecs
from datetime import datetime
from pathlib import Path

import pytest

from plugins.core_assets.contracts import AssetsOptions
from plugins.core_assets.errors import AccessDeniedError, AssetFileNotFoundError
from plugins.core_assets.file_gateway import FileGateway, strip_bom

pytestmark = pytest.mark.asyncio


@pytest.fixture
def gateway(files_dir: Path) -> FileGateway:
    return FileGateway(AssetsOptions(root_directory=files_dir, allowed_files=["**/test.html", "**/*.css"]))


class TestFileGateway:

    async def test_reads_allowed_relative_link(self, gateway: FileGateway, files_dir: Path):
        linked = await gateway.read_file("test/test.html")
        assert linked.content == b"hello"
        assert linked.filename == "test.html"
        assert isinstance(linked.modified, datetime)

    async def test_reads_allowed_absolute_link(self, gateway: FileGateway, files_dir: Path):
        linked = await gateway.read_file(str(files_dir / "test" / "test.html"))
        assert linked.content == b"hello"

    async def test_strips_utf8_bom(self, gateway: FileGateway, files_dir: Path):
        (files_dir / "style.css").write_bytes(codecs.BOM_UTF8 + b"body {}")
        linked = await gateway.read_file("style.css")
        assert linked.content == b"body {}"

    async def test_denied_link_raises_weak_error(self, gateway: FileGateway, files_dir: Path):
        (files_dir / "secret.txt").write_text("top secret")
        with pytest.raises(AccessDeniedError) as exc_info:
            await gateway.read_file("secret.txt")
        assert exc_info.value.weak is True
        assert "secret.txt" in str(exc_info.value)
        assert "ASSETS_ALLOWED_FILES" in str(exc_info.value)

    async def test_missing_allowed_file_raises_weak_error(self, gateway: FileGateway, files_dir: Path):
        with pytest.raises(AssetFileNotFoundError) as exc_info:
            await gateway.read_file("nowhere/test.html")
        assert exc_info.value.weak is True
        assert str(files_dir / "nowhere" / "test.html") in str(exc_info.value)

    async def test_write_file_goes_through_guard(self, gateway: FileGateway, files_dir: Path):
        await gateway.write_file("test/test.html", b"updated")
        assert (files_dir / "test" / "test.html").read_bytes() == b"updated"

        with pytest.raises(AccessDeniedError):
            await gateway.write_file("evil.sh", b"rm -rf /")
        assert not (files_dir / "evil.sh").exists()


class TestFileGatewayTraversal:

    async def test_parent_segments_cannot_escape_allowed_tree(self, files_dir: Path):
        (files_dir / "public").mkdir()
        (files_dir.parent / "secret.txt").write_text("top secret")
        gateway = FileGateway(AssetsOptions(root_directory=files_dir, allowed_files=["public/**"]))

        with pytest.raises(AccessDeniedError):
            await gateway.read_file("public/../../secret.txt")
        with pytest.raises(AccessDeniedError):
            await gateway.write_file("public/../../secret.txt", b"overwritten")
        assert (files_dir.parent / "secret.txt").read_text() == "top secret"

    async def test_bare_pattern_does_not_reach_outside_root(self, tmp_path: Path, files_dir: Path):
        outside = tmp_path / "outside.html"
        outside.write_text("outside")
        gateway = FileGateway(AssetsOptions(root_directory=files_dir, allowed_files=["*.html"]))

        with pytest.raises(AccessDeniedError):
            await gateway.read_file(str(outside))


def test_strip_bom_leaves_plain_content_alone():
    assert strip_bom(b"plain") == b"plain"
    assert strip_bom(codecs.BOM_UTF8) == b""
