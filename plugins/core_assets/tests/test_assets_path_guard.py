# plugins/core_assets/tests/test_assets_path_guard.py

import pytest

from plugins.core_assets.path_guard import flip_separators, is_path_allowed


class TestPathGuard:
    """白名单检查是所有磁盘访问前的安全边界。"""

    @pytest.mark.parametrize("allowed", [None, "", []])
    def test_unset_allow_list_denies_everything(self, allowed):
        assert is_path_allowed(allowed, "test.html", "/srv/app/test.html") is False

    def test_glob_matches_absolute_path(self):
        assert is_path_allowed("**/test.html", "test/test.html", "/srv/app/test/test.html")

    def test_path_outside_allow_list_is_denied(self):
        assert not is_path_allowed("**/test.html", "/etc/passwd", "/etc/passwd")

    def test_relative_pattern_matches_original_link(self):
        # 绝对路径不匹配锚定的相对模式，但原始链接匹配
        assert is_path_allowed("test/*.html", "test/test.html", "/srv/app/test/test.html")

    def test_backslash_link_matches_after_flipping(self):
        assert is_path_allowed("test/*.html", "test\\test.html", "C:\\app\\test\\test.html")

    def test_any_pattern_in_list_is_enough(self):
        patterns = ["**/*.css", "**/logo.png"]
        assert is_path_allowed(patterns, "img/logo.png", "/srv/app/img/logo.png")
        assert not is_path_allowed(patterns, "img/logo.jpg", "/srv/app/img/logo.jpg")

    def test_flip_separators(self):
        assert flip_separators("a/b/c") == "a\\b\\c"
        assert flip_separators("a\\b") == "a/b"


class TestPathGuardTraversal:
    """`..` 段与通配符的边界。"""

    @pytest.mark.parametrize("link", [
        "public/../../secret.txt",
        "public/../secret.txt",
        "public\\..\\..\\secret.txt",
        "../files/public/a.txt",
    ])
    def test_parent_segments_are_denied(self, link):
        assert not is_path_allowed("public/**", link, "/srv/public/a.txt")
        assert not is_path_allowed("**", link, "/srv/public/a.txt")

    def test_globstar_allows_nested_files(self):
        assert is_path_allowed("public/**", "public/a/b.txt", "/srv/app/public/a/b.txt")

    def test_bare_pattern_does_not_float_to_any_directory(self):
        assert is_path_allowed("*.html", "x.html", "/srv/app/x.html")
        assert not is_path_allowed("*.html", "/etc/x.html", "/etc/x.html")
        assert not is_path_allowed("*.html", "sub/x.html", "/srv/app/sub/x.html")

    def test_directory_pattern_does_not_allow_its_contents(self):
        assert not is_path_allowed("public/", "public/a/b.txt", "/srv/app/public/a/b.txt")

    def test_hidden_files_need_explicit_pattern(self):
        assert not is_path_allowed("**/*", ".env", "/srv/app/.env")
        assert is_path_allowed("**/.env", ".env", "/srv/app/.env")

    def test_absolute_link_inside_root_matches_relative_pattern(self):
        assert is_path_allowed("**/test.html", "/srv/app/test/test.html", "/srv/app/test/test.html", "/srv/app")
        assert not is_path_allowed("test/*.html", "/srv/other/test/test.html", "/srv/other/test/test.html", "/srv/app")

    def test_normalized_link_is_matched(self):
        assert is_path_allowed("test/*.html", "./test//test.html", "/srv/app/test/test.html")
