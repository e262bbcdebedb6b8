from __future__ import annotations

import math
from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
	current_page: int
	per_page: int
	total: int
	last_page: int


class Page(BaseModel, Generic[T]):
	data: list[T]
	meta: PageMeta

	@classmethod
	def build(cls, items: Sequence[T], *, page: int, per_page: int, total: int) -> "Page[T]":
		return cls(
			data=list(items),
			meta=PageMeta(
				current_page=page,
				per_page=per_page,
				total=total,
				last_page=max(1, math.ceil(total / per_page)) if per_page else 1,
			),
		)


class MessageOut(BaseModel):
	message: str


class ReorderItem(BaseModel):
	id: int
	sort_order: int


class ReorderInput(BaseModel):
	items: list[ReorderItem]
