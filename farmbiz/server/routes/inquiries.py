"""
문의 API

POST   /api/inquiries                  작성 (첨부 파일은 base64)
GET    /api/inquiries                  본인 문의 목록
PATCH  /api/inquiries/{id}             수정 (답변완료만)
DELETE /api/inquiries/{id}             삭제 (답변완료만)
POST   /api/inquiries/{id}/feedback    AI 답변 피드백
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Base64Bytes, BaseModel, Field

from ...domain.models import InquiryCategory, Profile
from ...inquiries.attachments import Attachment
from ...inquiries.service import InquiryDraft
from ..container import ServiceContainer
from ..deps import current_profile, get_services

router = APIRouter(prefix="/api/inquiries", tags=["inquiries"])


class AttachmentBody(BaseModel):
    filename: str
    content_type: str = Field(..., alias="contentType")
    data: Base64Bytes

    model_config = {"populate_by_name": True}


class CreateInquiryBody(BaseModel):
    title: str = ""
    content: str = ""
    wholesaler_id: Optional[str] = Field(default=None, alias="wholesalerId")
    product_id: Optional[str] = Field(default=None, alias="productId")
    order_id: Optional[str] = Field(default=None, alias="orderId")
    category: InquiryCategory = InquiryCategory.OTHER
    attachments: List[AttachmentBody] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def to_draft(self) -> InquiryDraft:
        return InquiryDraft(
            title=self.title,
            content=self.content,
            wholesaler_id=self.wholesaler_id,
            product_id=self.product_id,
            order_id=self.order_id,
            category=self.category,
            attachments=[
                Attachment(filename=a.filename, content_type=a.content_type, data=a.data)
                for a in self.attachments
            ],
        )


class UpdateInquiryBody(BaseModel):
    title: str = ""
    content: str = ""


class FeedbackBody(BaseModel):
    helpful: bool


@router.post("")
def create_inquiry(
    body: CreateInquiryBody,
    profile: Profile = Depends(current_profile),
    services: ServiceContainer = Depends(get_services),
):
    result = services.inquiries.create(profile, body.to_draft())
    return {"success": True, **result}


@router.get("")
def list_inquiries(
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    profile: Profile = Depends(current_profile),
    services: ServiceContainer = Depends(get_services),
):
    result = services.inquiries.list_for_user(
        profile, status=status, search=search, page=page, page_size=page_size
    )
    return {"success": True, **result}


@router.patch("/{inquiry_id}")
def update_inquiry(
    inquiry_id: str,
    body: UpdateInquiryBody,
    profile: Profile = Depends(current_profile),
    services: ServiceContainer = Depends(get_services),
):
    inquiry = services.inquiries.update(profile, inquiry_id, body.title, body.content)
    return {"success": True, "inquiry": inquiry.to_dict()}


@router.delete("/{inquiry_id}")
def delete_inquiry(
    inquiry_id: str,
    profile: Profile = Depends(current_profile),
    services: ServiceContainer = Depends(get_services),
):
    result = services.inquiries.delete(profile, inquiry_id)
    return {"success": True, **result}


@router.post("/{inquiry_id}/feedback")
def inquiry_feedback(
    inquiry_id: str,
    body: FeedbackBody,
    profile: Profile = Depends(current_profile),
    services: ServiceContainer = Depends(get_services),
):
    result = services.inquiries.feedback(profile, inquiry_id, body.helpful)
    return {"success": True, **result}
