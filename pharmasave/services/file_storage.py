"""
Object storage for pharmacy documents.

Files live in one of three buckets and are keyed by the pharmacy's display id:
``<display_id>/<document_type>_<uuid>.<ext>`` and ``<display_id>/verification/...``.
With ``USE_S3_UPLOADS`` the buckets are S3 buckets; otherwise they are directories
under ``UPLOADS_LOCAL_DIR``.
"""

import logging
import os
import re
import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from pharmasave import crud
from pharmasave.core.config import settings
from pharmasave.core.exceptions import ValidationFailedError
from pharmasave.models import Pharmacy, PharmacyDocument
from pharmasave.services import s3_service

logger = logging.getLogger(__name__)


def _detect_ext(original_filename: Optional[str]) -> str:
    if not original_filename:
        return "bin"
    _, ext = os.path.splitext(original_filename)
    return ext.lstrip(".").lower() or "bin"


def _content_type_for_ext(ext: str) -> str:
    return {
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "png": "image/png",
        "pdf": "application/pdf",
    }.get(ext.lower(), "application/octet-stream")


def extract_file_path(file_url: str, bucket: str) -> str:
    """Turn a stored URL or bucket-prefixed path into a key inside ``bucket``."""
    if not file_url:
        return ""

    if "http" not in file_url and "/storage/" not in file_url and not file_url.startswith("s3://"):
        return file_url.replace(f"{bucket}/", "", 1)

    patterns = [
        rf"/storage/v1/object/public/{re.escape(bucket)}/(.+)$",
        rf"{re.escape(bucket)}/(.+)$",
    ]
    for pattern in patterns:
        match = re.search(pattern, file_url)
        if match and match.group(1):
            return match.group(1)

    logger.warning(f"Could not extract file path from URL: {file_url}")
    return file_url


class StorageService:
    """Bucket operations with an S3 or local-directory backend."""

    def __init__(self, use_s3: Optional[bool] = None, local_root: Optional[str] = None):
        self.use_s3 = settings.USE_S3_UPLOADS if use_s3 is None else use_s3
        self.local_root = os.path.abspath(local_root or settings.UPLOADS_LOCAL_DIR)

    def _local_path(self, bucket: str, key: str) -> str:
        bucket_root = os.path.join(self.local_root, bucket)
        path = os.path.abspath(os.path.join(bucket_root, key))
        if not path.startswith(bucket_root + os.sep):
            raise ValueError(f"Key escapes bucket: {key}")
        return path

    def upload(self, bucket: str, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        if self.use_s3:
            s3_service.upload_bytes(bucket, key, data, content_type=content_type)
        else:
            path = self._local_path(bucket, key)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f_out:
                f_out.write(data)
        return f"{bucket}/{key}"

    def list(self, bucket: str, prefix: str) -> List[str]:
        prefix = prefix.rstrip("/")
        if self.use_s3:
            return s3_service.list_keys(bucket, prefix)
        folder = self._local_path(bucket, prefix)
        if not os.path.isdir(folder):
            return []
        return sorted(
            f"{prefix}/{name}"
            for name in os.listdir(folder)
            if os.path.isfile(os.path.join(folder, name))
        )

    def remove(self, bucket: str, keys: List[str]) -> Tuple[int, List[str]]:
        if self.use_s3:
            return s3_service.delete_keys(bucket, keys)
        deleted = 0
        errors: List[str] = []
        for key in keys:
            try:
                os.remove(self._local_path(bucket, key))
                deleted += 1
            except FileNotFoundError:
                errors.append(f"Failed to delete {key}: not found")
            except (OSError, ValueError) as e:
                errors.append(f"Failed to delete {key}: {e}")
        return deleted, errors


def get_storage() -> StorageService:
    return StorageService()


def upload_pharmacy_document(
    db: Session,
    storage: StorageService,
    *,
    pharmacy: Pharmacy,
    document_type: str,
    filename: str,
    content: bytes,
) -> PharmacyDocument:
    ext = _detect_ext(filename)
    if ext not in settings.ALLOWED_DOCUMENT_EXTENSIONS:
        raise ValidationFailedError(
            f"Unsupported file type .{ext}. Allowed: {', '.join(settings.ALLOWED_DOCUMENT_EXTENSIONS)}"
        )
    if len(content) > settings.MAX_DOCUMENT_SIZE_BYTES:
        raise ValidationFailedError("File size must be less than 10MB")
    if not content:
        raise ValidationFailedError("File is empty")

    folder = pharmacy.display_id or pharmacy.id
    key = f"{folder}/{document_type}_{uuid.uuid4().hex}.{ext}"
    file_url = storage.upload(settings.PHARMACY_DOCS_BUCKET, key, content, content_type=_content_type_for_ext(ext))

    document = PharmacyDocument(
        pharmacy_id=pharmacy.id,
        document_type=document_type,
        file_name=filename,
        file_url=file_url,
        file_size=len(content),
        mime_type=_content_type_for_ext(ext),
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    logger.info(f"📄 Stored {document_type} for {folder}: {file_url}")
    return document


def list_pharmacy_files(
    storage: StorageService, pharmacy: Pharmacy, errors: Optional[List[str]] = None
) -> Dict[str, List[str]]:
    """
    Keys in the pharmacy folder and its verification sub-folder, per bucket.

    When ``errors`` is given, a folder that cannot be listed is reported there and
    treated as empty; otherwise the listing error propagates.
    """
    folder = pharmacy.display_id or pharmacy.id
    files: Dict[str, List[str]] = {}
    for bucket in (settings.PHARMACY_DOCS_BUCKET, settings.VERIFICATION_DOCS_BUCKET):
        files[bucket] = []
        for prefix in (folder, f"{folder}/verification"):
            try:
                files[bucket].extend(storage.list(bucket, prefix))
            except RuntimeError as e:
                if errors is None:
                    raise
                logger.warning(f"⚠️ Could not list {bucket}/{prefix}: {e}")
                errors.append(str(e))
    return files


def cleanup_pharmacy_storage(db: Session, storage: StorageService, pharmacy: Pharmacy) -> Dict[str, object]:
    """
    Remove every stored file belonging to a pharmacy.

    Document rows are resolved to keys first; anything left in the pharmacy folder
    (and its ``verification/`` sub-folder) is removed afterwards. Other pharmacies'
    folders are never listed. Errors are collected and reported, not raised.
    """
    errors: List[str] = []
    total_deleted = 0
    folder = pharmacy.display_id or pharmacy.id
    logger.info(f"🧹 Starting storage cleanup for pharmacy: {folder}")

    for doc in crud.pharmacy_document.get_by_pharmacy(db, pharmacy_id=pharmacy.id):
        key = extract_file_path(doc.file_url, settings.PHARMACY_DOCS_BUCKET)
        deleted, _ = storage.remove(settings.PHARMACY_DOCS_BUCKET, [key])
        if not deleted:
            # Verification uploads may live in the other bucket
            deleted, _ = storage.remove(settings.VERIFICATION_DOCS_BUCKET, [key])
            if not deleted:
                errors.append(f"Failed to delete {key} from both buckets")
                continue
        total_deleted += deleted

    for bucket, keys in list_pharmacy_files(storage, pharmacy, errors).items():
        if not keys:
            continue
        deleted, errs = storage.remove(bucket, keys)
        total_deleted += deleted
        errors.extend(errs)

    logger.info(f"🧹 Storage cleanup for {folder}: {total_deleted} files deleted, {len(errors)} errors")
    return {"success": not errors, "files_deleted": total_deleted, "errors": errors}
