import os

import pytest

from pharmasave.core.config import settings
from pharmasave.core.exceptions import ValidationFailedError
from pharmasave.services.file_storage import (
    cleanup_pharmacy_storage,
    extract_file_path,
    list_pharmacy_files,
    upload_pharmacy_document,
)

BUCKET = "pharmacy-documents"


@pytest.mark.parametrize(
    "file_url, expected",
    [
        ("pharmacy-documents/PH0001/license_ab12.pdf", "PH0001/license_ab12.pdf"),
        ("PH0001/license_ab12.pdf", "PH0001/license_ab12.pdf"),
        (
            "https://files.example.com/storage/v1/object/public/pharmacy-documents/PH0001/id.png",
            "PH0001/id.png",
        ),
        ("s3://pharmacy-documents/PH0001/verification/id.png", "PH0001/verification/id.png"),
        ("", ""),
    ],
)
def test_extract_file_path(file_url, expected):
    assert extract_file_path(file_url, BUCKET) == expected


def test_upload_stores_under_display_id(db, storage, owner):
    document = upload_pharmacy_document(
        db, storage, pharmacy=owner.pharmacy, document_type="license", filename="License.PDF", content=b"%PDF"
    )

    assert document.file_url.startswith(f"{settings.PHARMACY_DOCS_BUCKET}/PH0001/license_")
    assert document.file_url.endswith(".pdf")
    assert document.mime_type == "application/pdf"
    assert os.path.exists(os.path.join(storage.local_root, document.file_url))


@pytest.mark.parametrize(
    "filename, content, message",
    [
        ("notes.txt", b"text", "Unsupported file type .txt"),
        ("empty.pdf", b"", "File is empty"),
    ],
)
def test_upload_validation(db, storage, owner, filename, content, message):
    with pytest.raises(ValidationFailedError, match=message):
        upload_pharmacy_document(
            db, storage, pharmacy=owner.pharmacy, document_type="license", filename=filename, content=content
        )


@pytest.mark.parametrize("key", ["../other-bucket/file.pdf", "../pharmacy-documents-x/file.pdf", "."])
def test_keys_cannot_escape_the_bucket(storage, key):
    with pytest.raises(ValueError):
        storage.upload(BUCKET, key, b"x")


def test_cleanup_stays_inside_pharmacy_folder(db, storage, owner, other_owner):
    upload_pharmacy_document(
        db, storage, pharmacy=owner.pharmacy, document_type="license", filename="a.pdf", content=b"a"
    )
    storage.upload(settings.PHARMACY_DOCS_BUCKET, "PH0001/orphan.jpg", b"b")
    kept = upload_pharmacy_document(
        db, storage, pharmacy=other_owner.pharmacy, document_type="license", filename="b.pdf", content=b"c"
    )

    result = cleanup_pharmacy_storage(db, storage, owner.pharmacy)

    assert result["success"] is True
    assert result["files_deleted"] == 2
    assert list_pharmacy_files(storage, owner.pharmacy) == {
        settings.PHARMACY_DOCS_BUCKET: [],
        settings.VERIFICATION_DOCS_BUCKET: [],
    }
    assert os.path.exists(os.path.join(storage.local_root, kept.file_url))


def test_remove_reports_missing_files(storage):
    deleted, errors = storage.remove(BUCKET, ["PH0009/missing.pdf"])
    assert deleted == 0
    assert errors == ["Failed to delete PH0009/missing.pdf: not found"]
