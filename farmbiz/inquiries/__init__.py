"""
문의 워크플로우 (작성/수정/삭제/피드백, 첨부 파일)
"""

from .attachments import (
    Attachment,
    InquiryAttachmentStorage,
    StoredAttachment,
    validate_attachments,
)
from .service import InquiryDraft, InquiryService

__all__ = [
    "Attachment",
    "InquiryAttachmentStorage",
    "StoredAttachment",
    "validate_attachments",
    "InquiryDraft",
    "InquiryService",
]
