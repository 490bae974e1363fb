"""
service.py - 문의 워크플로우

작성 → 관리자/도매점 답변(answered) → 작성자 수정·삭제·피드백.
수정/삭제는 (id, 작성자, status=answered) 조건부 단일 쿼리로 처리하고
영향받은 행이 없을 때만 다시 읽어서 실패 원인을 분류한다.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..api.supabase_client import SupabaseRepository, check_paging, quote_filter_value
from ..auth.identity import require_role
from ..core.config import DEFAULT_RULES, BusinessRules
from ..core.exceptions import (
    FarmBizError,
    NotFoundError,
    OwnershipError,
    RateLimitError,
    SchemaNotMigratedError,
    StateError,
    SupabaseError,
    ValidationError,
)
from ..domain.models import (
    Inquiry,
    InquiryCategory,
    InquiryStatus,
    InquiryType,
    Profile,
    UserRole,
)
from .attachments import Attachment, InquiryAttachmentStorage, validate_attachments

logger = logging.getLogger(__name__)

# 화면 표시용 상태명 → DB 값
STATUS_LABELS = {
    "접수완료": InquiryStatus.OPEN,
    "답변완료": InquiryStatus.ANSWERED,
    "종료": InquiryStatus.CLOSED,
}

AI_REPLY_FAILED = "AI 답변 생성에 실패했습니다. 담당자가 확인 후 답변드리겠습니다."


@dataclass
class InquiryDraft:
    """문의 작성 입력"""
    title: str
    content: str
    wholesaler_id: Optional[str] = None     # 상품 문의 대상 도매점
    product_id: Optional[str] = None
    order_id: Optional[str] = None
    category: InquiryCategory = InquiryCategory.OTHER
    attachments: List[Attachment] = field(default_factory=list)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InquiryService(SupabaseRepository):
    """문의 서비스"""

    def __init__(
        self,
        client,
        storage: InquiryAttachmentStorage = None,
        responder=None,
        rules: BusinessRules = DEFAULT_RULES,
    ):
        """
        Args:
            client: Supabase 클라이언트
            storage: 첨부 파일 저장소 (없으면 같은 클라이언트로 생성)
            responder: AI 답변 생성기 (InquiryResponder, 선택)
            rules: 제목/내용/첨부 제한
        """
        super().__init__(client)
        self.storage = storage or InquiryAttachmentStorage(client, rules=rules)
        self.responder = responder
        self.rules = rules

    # ========== 작성 ==========

    def create(self, profile: Profile, draft: InquiryDraft) -> Dict[str, Any]:
        """문의 작성

        Returns:
            {"inquiryId", "attachmentUrls", "aiReply"?, "aiError"?}
        """
        require_role(profile, UserRole.RETAILER, UserRole.WHOLESALER)

        title = _clean(draft.title)
        content = _clean(draft.content)
        if not title or not content:
            raise ValidationError("제목과 내용을 입력해주세요.", field="title,content")
        if len(title) > self.rules.inquiry_title_max:
            raise ValidationError(
                f"제목은 {self.rules.inquiry_title_max}자 이하로 입력해주세요.",
                field="title",
            )

        inquiry_type, wholesaler_id = self._resolve_type(profile, draft)

        # 업로드 전에 전체 검증
        validate_attachments(draft.attachments, self.rules)
        stored = self.storage.upload_all(profile.clerk_user_id, draft.attachments)
        attachment_urls = [s.url for s in stored]

        row = {
            "user_id": profile.id,
            "title": title,
            "content": content,
            "inquiry_type": inquiry_type.value,
            "wholesaler_id": wholesaler_id,
            "product_id": _clean(draft.product_id),
            "order_id": _clean(draft.order_id),
            "attachment_urls": attachment_urls or None,
            "status": InquiryStatus.OPEN.value,
        }
        try:
            inserted = self._first(
                self.client.table(self.TABLE_INQUIRIES).insert(row),
                self.TABLE_INQUIRIES,
                "insert",
            )
        except SupabaseError as e:
            self.storage.remove([s.path for s in stored])
            raise SupabaseError(
                "문의 저장에 실패했습니다. 잠시 후 다시 시도해주세요.",
                table=self.TABLE_INQUIRIES,
                operation="insert",
                cause=e,
                details={"attachment_count": len(attachment_urls)},
            ) from e
        if inserted is None:
            self.storage.remove([s.path for s in stored])
            raise SupabaseError(
                "문의 저장에 실패했습니다. 잠시 후 다시 시도해주세요.",
                table=self.TABLE_INQUIRIES,
                operation="insert",
            )

        inquiry_id = inserted["id"]
        logger.info(
            f"문의 작성 완료: {inquiry_type.value}",
            extra={"context": {
                "inquiry_id": inquiry_id,
                "user_id": profile.id,
                "attachment_count": len(attachment_urls),
            }},
        )

        result: Dict[str, Any] = {"inquiryId": inquiry_id, "attachmentUrls": attachment_urls}
        if self.responder is not None and inquiry_type != InquiryType.RETAILER_TO_WHOLESALER:
            result.update(self._draft_ai_reply(title, content, draft.category, inquiry_id))
        return result

    def _resolve_type(self, profile: Profile, draft: InquiryDraft):
        """작성자 역할/대상으로 문의 유형 결정"""
        if profile.role == UserRole.WHOLESALER:
            return InquiryType.WHOLESALER_TO_ADMIN, profile.wholesaler_id

        wholesaler_id = _clean(draft.wholesaler_id)
        if draft.product_id or draft.wholesaler_id is not None:
            if not wholesaler_id:
                raise ValidationError("도매점 정보가 없습니다.", field="wholesaler_id")
            return InquiryType.RETAILER_TO_WHOLESALER, wholesaler_id
        return InquiryType.RETAILER_TO_ADMIN, None

    def _draft_ai_reply(self, title: str, content: str, category, inquiry_id: str) -> Dict[str, str]:
        # AI 답변 실패는 문의 저장 결과에 영향 없음
        try:
            return {"aiReply": self.responder.respond(title, content, category)}
        except RateLimitError as e:
            logger.warning(f"AI 답변 한도 초과: inquiry_id={inquiry_id}")
            return {"aiError": e.user_message}
        except FarmBizError as e:
            logger.error(f"AI 답변 생성 실패: inquiry_id={inquiry_id} {e}")
            return {"aiError": AI_REPLY_FAILED}

    # ========== 수정 / 삭제 ==========

    def update(self, profile: Profile, inquiry_id: str, title: str, content: str) -> Inquiry:
        """답변완료된 본인 문의 수정"""
        title = _clean(title)
        content = _clean(content)
        if not title or not content:
            raise ValidationError("제목과 내용을 입력해주세요.", field="title,content")
        if len(title) > self.rules.inquiry_title_max:
            raise ValidationError(
                f"제목은 {self.rules.inquiry_title_max}자 이하로 입력해주세요.",
                field="title",
            )
        if not self.rules.inquiry_content_min <= len(content) <= self.rules.inquiry_content_max:
            raise ValidationError(
                f"내용은 {self.rules.inquiry_content_min}자 이상 "
                f"{self.rules.inquiry_content_max}자 이하로 입력해주세요.",
                field="content",
            )

        rows = self._rows(
            self.client.table(self.TABLE_INQUIRIES)
            .update({"title": title, "content": content, "updated_at": _now_iso()})
            .eq("id", inquiry_id)
            .eq("user_id", profile.id)
            .eq("status", InquiryStatus.ANSWERED.value),
            self.TABLE_INQUIRIES,
            "update",
        )
        if not rows:
            self._raise_gate_failure(inquiry_id, profile, "수정")

        logger.info(f"문의 수정 완료: {inquiry_id}")
        return Inquiry.from_row(rows[0])

    def delete(self, profile: Profile, inquiry_id: str) -> Dict[str, Any]:
        """답변완료된 본인 문의 삭제"""
        rows = self._rows(
            self.client.table(self.TABLE_INQUIRIES)
            .delete()
            .eq("id", inquiry_id)
            .eq("user_id", profile.id)
            .eq("status", InquiryStatus.ANSWERED.value),
            self.TABLE_INQUIRIES,
            "delete",
        )
        if not rows:
            self._raise_gate_failure(inquiry_id, profile, "삭제")

        logger.info(f"문의 삭제 완료: {inquiry_id}")
        return {"inquiryId": inquiry_id}

    def feedback(self, profile: Profile, inquiry_id: str, helpful: bool) -> Dict[str, Any]:
        """AI 답변 피드백 (도움됨/도움 안됨)"""
        if not isinstance(helpful, bool):
            raise ValidationError("피드백 값이 올바르지 않습니다.", field="helpful", value=helpful)

        try:
            rows = self._rows(
                self.client.table(self.TABLE_INQUIRIES)
                .update({"ai_feedback": helpful})
                .eq("id", inquiry_id)
                .eq("user_id", profile.id),
                self.TABLE_INQUIRIES,
                "update",
            )
        except SchemaNotMigratedError as e:
            raise SchemaNotMigratedError(
                "피드백 기능을 사용하려면 데이터베이스 마이그레이션이 필요합니다.",
                column="ai_feedback",
                table=self.TABLE_INQUIRIES,
                operation="update",
                cause=e,
            ) from e

        if not rows:
            self._raise_gate_failure(inquiry_id, profile, None)
        return {"inquiryId": inquiry_id, "helpful": helpful}

    def _raise_gate_failure(self, inquiry_id: str, profile: Profile, action: Optional[str]):
        """조건부 갱신 실패 원인 분류"""
        row = self._first(
            self.client.table(self.TABLE_INQUIRIES)
            .select("id, user_id, status")
            .eq("id", inquiry_id)
            .limit(1),
            self.TABLE_INQUIRIES,
            "select",
        )
        if row is None:
            raise NotFoundError("문의를 찾을 수 없습니다.", resource="inquiry", resource_id=inquiry_id)
        if row.get("user_id") != profile.id:
            logger.warning(f"문의 소유자 불일치: inquiry_id={inquiry_id}")
            raise OwnershipError("권한이 없습니다.", resource="inquiry", resource_id=inquiry_id)
        if action and row.get("status") != InquiryStatus.ANSWERED.value:
            raise StateError(
                f"답변완료된 문의만 {action}할 수 있습니다.",
                current_state=row.get("status"),
                requested=action,
            )
        raise StateError(
            "문의 상태가 변경되었습니다. 다시 시도해주세요.",
            current_state=row.get("status"),
            requested=action,
        )

    # ========== 조회 ==========

    def list_for_user(
        self,
        profile: Profile,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = DEFAULT_RULES.default_page_size,
    ) -> Dict[str, Any]:
        """본인 문의 목록 (최신순)

        Args:
            status: open | answered | closed 또는 화면 표시명 (접수완료/답변완료/종료), "전체"는 필터 없음
            search: 제목/내용 검색어
        """
        check_paging(page, page_size, self.rules.max_page_size)

        query = (
            self.client.table(self.TABLE_INQUIRIES)
            .select("*", count="exact")
            .eq("user_id", profile.id)
        )

        if status and status != "전체":
            try:
                db_status = STATUS_LABELS.get(status) or InquiryStatus(status)
            except ValueError:
                raise ValidationError("지원하지 않는 문의 상태입니다.", field="status", value=status)
            query = query.eq("status", db_status.value)

        term = _clean(search)
        if term:
            pattern = quote_filter_value(f"%{term}%")
            query = query.or_(f"title.ilike.{pattern},content.ilike.{pattern}")

        start = (page - 1) * page_size
        result = self._execute(
            query.order("created_at", desc=True).range(start, start + page_size - 1),
            self.TABLE_INQUIRIES,
            "select",
        )
        rows = list(result.data or [])
        total = result.count if result.count is not None else len(rows)

        return {
            "inquiries": [Inquiry.from_row(r).to_dict() for r in rows],
            "total": total,
            "page": page,
            "pageSize": page_size,
            "totalPages": math.ceil(total / page_size),
        }
