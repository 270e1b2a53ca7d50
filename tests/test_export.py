"""Tests for infra/utils/export.py: text cleanup and download helpers."""

from __future__ import annotations

from datetime import datetime

import pytest

from infra.utils.export import (
    export_as_markdown,
    export_as_plain_text,
    format_timestamp,
    safe_filename,
    strip_html,
    strip_markdown,
)


class TestStripHtml:
    def test_removes_tags_keeps_text(self):
        assert strip_html("<p>Kính gửi <b>UBND</b></p>") == "Kính gửi UBND"

    def test_empty(self):
        assert strip_html("") == ""
        assert strip_html(None) == ""


class TestStripMarkdown:
    @pytest.mark.parametrize("markdown,expected", [
        ("# QUYẾT ĐỊNH", "QUYẾT ĐỊNH"),
        ("**Điều 1.** Ban hành", "Điều 1. Ban hành"),
        ("- Các thôn\n- Các xã", "Các thôn\nCác xã"),
        ("1. Mục một", "Mục một"),
        ("> Trích dẫn", "Trích dẫn"),
        ("~~cũ~~ mới", "cũ mới"),
        ("Dùng `mã`", "Dùng mã"),
        ("[Cổng thông tin](https://example.gov.vn)", "Cổng thông tin"),
    ])
    def test_rules(self, markdown, expected):
        assert strip_markdown(markdown) == expected

    def test_image_keeps_alt_text_without_bang(self):
        assert strip_markdown("![Con dấu](dau.png)") == "Con dấu"

    def test_horizontal_rule_removed(self):
        assert strip_markdown("Phần 1\n\n---\n\nPhần 2") == "Phần 1\n\nPhần 2"

    def test_collapses_blank_lines(self):
        assert strip_markdown("A\n\n\n\nB") == "A\n\nB"


class TestExports:
    def test_plain_text_strips_both(self):
        assert export_as_plain_text("<br>**Nơi nhận:**") == "Nơi nhận:"

    def test_markdown_has_title_heading(self):
        assert export_as_markdown("Báo cáo ABC", "<i>Nội dung</i>") == "# Báo cáo ABC\n\nNội dung"

    def test_format_timestamp(self):
        ts = int(datetime(2026, 10, 17, 9, 5, 3).timestamp() * 1000)
        assert format_timestamp(ts) == "17/10/2026 09:05:03"

    @pytest.mark.parametrize("title,expected", [
        ("Báo cáo: quý III/2026", "Báo cáo quý III 2026"),
        ("", "van-ban"),
        ('***', "van-ban"),
    ])
    def test_safe_filename(self, title, expected):
        assert safe_filename(title) == expected
