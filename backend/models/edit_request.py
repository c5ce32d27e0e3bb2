"""
编辑请求数据模型

编辑目标是带标签的联合类型：segment（段落内容 / 开篇提示）或 metadata（标题、简介、类型）
"""

from typing import Optional, Union, Literal
from pydantic import BaseModel, Field, model_validator
from enum import Enum


class EditType(str, Enum):
    """编辑类型"""
    SEGMENT_CONTENT = "segment_content"
    STORY_METADATA = "story_metadata"


class EditRequestStatus(str, Enum):
    """编辑请求状态"""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class SegmentEditPayload(BaseModel):
    """段落内容编辑（segment_id 为空表示编辑开篇提示）"""
    kind: Literal["segment"] = "segment"
    segment_id: Optional[str] = Field(None, description="目标段落ID")
    proposed_content: str = Field(..., min_length=1, max_length=5000, description="建议内容")


class MetadataEditPayload(BaseModel):
    """故事元数据编辑"""
    kind: Literal["metadata"] = "metadata"
    proposed_title: Optional[str] = Field(None, min_length=1, max_length=256)
    proposed_description: Optional[str] = Field(None, min_length=1)
    proposed_genre: Optional[str] = Field(None, min_length=1, max_length=64)

    @model_validator(mode="after")
    def check_any_field(self):
        if self.proposed_title is None and self.proposed_description is None and self.proposed_genre is None:
            raise ValueError("at least one of proposed_title, proposed_description, proposed_genre is required")
        return self


EditTarget = Union[SegmentEditPayload, MetadataEditPayload]


class EditRequestCreate(BaseModel):
    """发起编辑请求"""
    target: EditTarget = Field(..., discriminator="kind", description="编辑目标")
    reason: Optional[str] = Field(None, max_length=1000, description="编辑理由")

    @property
    def edit_type(self) -> EditType:
        if isinstance(self.target, SegmentEditPayload):
            return EditType.SEGMENT_CONTENT
        return EditType.STORY_METADATA
