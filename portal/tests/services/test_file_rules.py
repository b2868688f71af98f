from dataclasses import dataclass

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from portal.services import file_rules


@dataclass
class FakeFile:
    name: str
    type: str
    size: int = 100


@pytest.mark.parametrize(
    "text, expected",
    [
        ("10MB", 10 * 1024 * 1024),
        ("512KB", 512 * 1024),
        ("7", 7),
        ("2gb", 2 * 1024 * 1024 * 1024),
        ("1Mb", 1024 * 1024),
        ("15XB", 15),
    ],
)
def test_parse_human_size(text, expected):
    assert file_rules.parse_human_size(text) == expected


def test_parse_human_size_is_best_effort_and_never_raises():
    assert file_rules.parse_human_size("12 bananas later") == 12
    assert file_rules.parse_human_size("MB") == 0
    assert file_rules.parse_human_size("") == 0
    assert file_rules.parse_human_size(None) == 0
    assert file_rules.parse_human_size(4096) == 4096


def test_format_size():
    assert file_rules.format_size(10 * 1024 * 1024) == "10MB"
    assert file_rules.format_size(3 * 1024) == "3KB"
    assert file_rules.format_size(1500) == "1500B"


def test_file_extension_is_lowercased():
    assert file_rules.file_extension("Essay.Final.PDF") == ".pdf"
    assert file_rules.file_extension("README") == ""
    assert file_rules.file_extension(None) == ""


def test_accept_wildcard_matches_mime_category():
    png = FakeFile("cover.png", "image/png")
    assert file_rules.file_matches_accept(png, [".jpg", "image/*"]) is True


def test_accept_rejects_when_no_pattern_matches():
    txt = FakeFile("notes.txt", "text/plain")
    assert file_rules.file_matches_accept(txt, [".jpg", "image/*"]) is False


def test_accept_extension_and_exact_mime():
    pdf = FakeFile("Poem.PDF", "application/octet-stream")
    assert file_rules.file_matches_accept(pdf, [".pdf"]) is True

    jpeg = FakeFile("photo", "image/jpeg")
    assert file_rules.file_matches_accept(jpeg, ["image/jpeg"]) is True
    assert file_rules.file_matches_accept(jpeg, ["image/png"]) is False


def test_accept_is_any_not_all():
    doc = FakeFile("story.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document")
    assert file_rules.file_matches_accept(doc, ["image/*", ".pdf", ".docx"]) is True


def test_accept_empty_list_matches_nothing():
    assert file_rules.file_matches_accept(FakeFile("a.pdf", "application/pdf"), []) is False


def test_accept_reads_django_upload_content_type():
    upload = SimpleUploadedFile("scan.bin", b"xx", content_type="image/tiff")
    assert file_rules.file_matches_accept(upload, ["image/*"]) is True


def test_exceeds_hard_cap_boundary():
    at_cap = FakeFile("a.pdf", "application/pdf", size=file_rules.HARD_FILE_SIZE_CAP)
    over = FakeFile("a.pdf", "application/pdf", size=file_rules.HARD_FILE_SIZE_CAP + 1)
    assert file_rules.exceeds_hard_cap(at_cap) is False
    assert file_rules.exceeds_hard_cap(over) is True
