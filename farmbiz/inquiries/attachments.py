"""
attachments.py - 문의 첨부 파일 검증/업로드

Supabase Storage 버킷의 {ownerId}/inquiries/{timestamp}-{random}.{ext} 경로에 저장하고
공개 URL 만 반환한다. 모든 파일을 먼저 검증한 뒤 업로드한다.
"""

import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import List, Sequence

from ..core.config import DEFAULT_RULES, BusinessRules
from ..core.exceptions import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class Attachment:
    """업로드 대상 파일"""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if "." in self.filename:
            ext = self.filename.rsplit(".", 1)[-1].lower()
            if ext:
                return ext
        return "jpg"


@dataclass
class StoredAttachment:
    """업로드된 파일 (저장 경로 + 공개 URL)"""
    path: str
    url: str


def validate_attachments(files: Sequence[Attachment], rules: BusinessRules = DEFAULT_RULES):
    """첨부 파일 개수/형식/크기 검증"""
    if len(files) > rules.max_attachments:
        raise ValidationError(
            f"첨부 파일은 최대 {rules.max_attachments}개까지 업로드 가능합니다.",
            field="attachments",
            value=len(files),
        )

    for f in files:
        if f.content_type not in rules.allowed_attachment_types:
            raise ValidationError(
                f"지원하지 않는 파일 형식입니다. 허용 형식: {', '.join(rules.allowed_attachment_types)}",
                field="attachments",
                value=f.content_type,
            )
        if f.size > rules.max_attachment_bytes:
            max_mb = rules.max_attachment_bytes // (1024 * 1024)
            raise ValidationError(
                f"파일 크기는 {max_mb}MB 이하여야 합니다.",
                field="attachments",
                value=f.filename,
            )


class InquiryAttachmentStorage:
    """문의 첨부 파일 저장소"""

    def __init__(self, client, bucket: str = "product-images", rules: BusinessRules = DEFAULT_RULES):
        self.client = client
        self.bucket = bucket
        self.rules = rules

    def build_path(self, owner_id: str, attachment: Attachment) -> str:
        timestamp = int(time.time() * 1000)
        random_str = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(7))
        return f"{owner_id}/inquiries/{timestamp}-{random_str}.{attachment.extension}"

    def upload_all(self, owner_id: str, files: Sequence[Attachment]) -> List[StoredAttachment]:
        """검증 후 업로드

        중간에 업로드가 실패하면 앞서 올린 파일을 지우고 예외를 그대로 올린다.
        """
        validate_attachments(files, self.rules)
        stored: List[StoredAttachment] = []
        try:
            for f in files:
                stored.append(self.store(owner_id, f))
        except UpstreamError:
            self.remove([s.path for s in stored])
            raise
        return stored

    def upload(self, owner_id: str, attachment: Attachment) -> str:
        """단일 파일 업로드, 공개 URL 반환"""
        return self.store(owner_id, attachment).url

    def store(self, owner_id: str, attachment: Attachment) -> StoredAttachment:
        path = self.build_path(owner_id, attachment)
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(
                path,
                attachment.data,
                {
                    "content-type": attachment.content_type,
                    "cache-control": "3600",
                    "upsert": "false",
                },
            )
        except Exception as e:
            raise UpstreamError(
                "파일 업로드에 실패했습니다.",
                endpoint=f"storage:{self.bucket}",
                cause=e,
                details={"path": path, "error": str(e)},
            ) from e

        url = bucket.get_public_url(path)
        logger.info(f"첨부 파일 업로드 완료: {path} ({attachment.size} bytes)")
        return StoredAttachment(path=path, url=url)

    def remove(self, paths: List[str]) -> bool:
        """업로드한 파일 삭제 (정리 실패는 로그만 남기고 False)"""
        if not paths:
            return True
        try:
            self.client.storage.from_(self.bucket).remove(paths)
        except Exception as e:
            logger.error(
                f"첨부 파일 정리 실패: {len(paths)}개 ({type(e).__name__}: {e})",
                extra={"context": {"bucket": self.bucket, "paths": paths}},
            )
            return False
        logger.info(f"첨부 파일 정리 완료: {len(paths)}개")
        return True
