from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from .auth import UserBrief
from .category import CategoryOut

CourseTypeLiteral = Literal["self_paced", "structured"]
CourseLevelLiteral = Literal["beginner", "intermediate", "advanced", "all_levels"]
LessonTypeLiteral = Literal["video", "text", "quiz", "assignment"]
VideoProviderLiteral = Literal["youtube", "vimeo", "upload"]


def _check_discount(price: Decimal | None, discount_price: Decimal | None) -> None:
	if price is not None and discount_price is not None and discount_price >= price:
		raise ValueError("The discount price must be less than price.")


class CourseCreate(BaseModel):
	title: str = Field(min_length=1, max_length=255)
	subtitle: str | None = Field(default=None, max_length=255)
	description: str = Field(min_length=1)
	category_id: int | None = None
	type: CourseTypeLiteral = "self_paced"
	level: CourseLevelLiteral = "all_levels"
	language: str = Field(default="id", max_length=8)
	price: Decimal = Field(ge=0)
	discount_price: Decimal | None = Field(default=None, ge=0)
	preview_video: str | None = Field(default=None, max_length=512)
	requirements: list[str] | None = None
	outcomes: list[str] | None = None
	target_audience: list[str] | None = None

	@model_validator(mode="after")
	def _discount_below_price(self) -> "CourseCreate":
		_check_discount(self.price, self.discount_price)
		return self


class CourseUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=255)
	subtitle: str | None = Field(default=None, max_length=255)
	description: str | None = None
	category_id: int | None = None
	type: CourseTypeLiteral | None = None
	level: CourseLevelLiteral | None = None
	language: str | None = Field(default=None, max_length=8)
	price: Decimal | None = Field(default=None, ge=0)
	discount_price: Decimal | None = Field(default=None, ge=0)
	preview_video: str | None = Field(default=None, max_length=512)
	requirements: list[str] | None = None
	outcomes: list[str] | None = None
	target_audience: list[str] | None = None

	@model_validator(mode="after")
	def _discount_below_price(self) -> "CourseUpdate":
		_check_discount(self.price, self.discount_price)
		return self


class CourseSummary(BaseModel):
	id: int
	title: str
	slug: str
	subtitle: str | None = None
	thumbnail: str | None = None
	type: str
	level: str
	price: Decimal
	discount_price: Decimal | None = None
	effective_price: Decimal
	is_free: bool
	is_on_sale: bool
	status: str
	is_featured: bool
	average_rating: Decimal
	total_enrollments: int
	total_lessons: int
	total_duration: int
	instructor_id: int
	category_id: int | None = None
	published_at: datetime | None = None
	created_at: datetime

	model_config = {"from_attributes": True}


class AttachmentOut(BaseModel):
	id: int
	title: str
	file_path: str
	file_name: str
	file_type: str | None = None
	file_size: int
	sort_order: int

	model_config = {"from_attributes": True}


class LessonCreate(BaseModel):
	title: str = Field(min_length=1, max_length=255)
	type: LessonTypeLiteral = "video"
	content: str | None = None
	video_url: str | None = Field(default=None, max_length=512)
	video_provider: VideoProviderLiteral | None = None
	duration: int = Field(default=0, ge=0)
	is_free: bool = False
	is_published: bool = True


class LessonUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=255)
	type: LessonTypeLiteral | None = None
	content: str | None = None
	video_url: str | None = Field(default=None, max_length=512)
	video_provider: VideoProviderLiteral | None = None
	duration: int | None = Field(default=None, ge=0)
	is_free: bool | None = None
	is_published: bool | None = None


class LessonOut(BaseModel):
	id: int
	section_id: int
	title: str
	type: str
	content: str | None = None
	video_url: str | None = None
	video_provider: str | None = None
	duration: int
	is_free: bool
	is_published: bool
	sort_order: int

	model_config = {"from_attributes": True}


class LessonDetail(LessonOut):
	attachments: list[AttachmentOut] = Field(default_factory=list)


class SectionCreate(BaseModel):
	title: str = Field(min_length=1, max_length=255)
	description: str | None = None


class SectionUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=255)
	description: str | None = None


class SectionOut(BaseModel):
	id: int
	course_id: int
	title: str
	description: str | None = None
	sort_order: int

	model_config = {"from_attributes": True}


class SectionDetail(SectionOut):
	lessons: list[LessonOut] = Field(default_factory=list)


class CourseDetail(CourseSummary):
	description: str | None = None
	language: str
	preview_video: str | None = None
	requirements: list[str] | None = None
	outcomes: list[str] | None = None
	target_audience: list[str] | None = None
	total_reviews: int
	instructor: UserBrief | None = None
	category: CategoryOut | None = None
	sections: list[SectionDetail] = Field(default_factory=list)


class CatalogCourseDetail(CourseDetail):
	views: int = 0
