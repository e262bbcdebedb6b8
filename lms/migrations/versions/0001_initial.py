"""initial lms schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
	return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _updated_at() -> sa.Column:
	return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _money(name: str, nullable: bool = False) -> sa.Column:
	if nullable:
		return sa.Column(name, sa.Numeric(12, 2), nullable=True)
	return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default='0')


def upgrade() -> None:
	# Accounts and roles
	op.create_table(
		'users',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('name', sa.String(length=255), nullable=False),
		sa.Column('email', sa.String(length=255), nullable=False),
		sa.Column('hashed_password', sa.String(length=255), nullable=False),
		sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
		sa.Column('email_verified_at', sa.DateTime(timezone=True), nullable=True),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_users_email', 'users', ['email'], unique=True)

	op.create_table(
		'roles',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('name', sa.String(length=64), nullable=False, unique=True),
		_created_at(),
		_updated_at(),
	)
	op.create_table(
		'permissions',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('name', sa.String(length=128), nullable=False, unique=True),
		_created_at(),
	)
	op.create_table(
		'user_roles',
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
		sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
	)
	op.create_table(
		'role_permissions',
		sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
		sa.Column('permission_id', sa.Integer(), sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True),
	)

	op.create_table(
		'profiles',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
		sa.Column('avatar', sa.String(length=512), nullable=True),
		sa.Column('bio', sa.Text(), nullable=True),
		sa.Column('phone', sa.String(length=32), nullable=True),
		sa.Column('headline', sa.String(length=255), nullable=True),
		sa.Column('website', sa.String(length=255), nullable=True),
		sa.Column('linkedin', sa.String(length=255), nullable=True),
		sa.Column('twitter', sa.String(length=255), nullable=True),
		sa.Column('youtube', sa.String(length=255), nullable=True),
		sa.Column('expertise', sa.JSON(), nullable=True),
		_created_at(),
		_updated_at(),
	)

	op.create_table(
		'refresh_tokens',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('token_id', sa.Uuid(), nullable=False, unique=True),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
		sa.Column('token_hash', sa.String(length=64), nullable=False),
		sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
		sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
		_created_at(),
		sa.UniqueConstraint('token_hash', name='uq_refresh_tokens_token_hash'),
	)
	op.create_index('ix_refresh_tokens_user_id', 'refresh_tokens', ['user_id'], unique=False)
	op.create_index('ix_refresh_tokens_expires_at', 'refresh_tokens', ['expires_at'], unique=False)

	# Catalog
	op.create_table(
		'categories',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('parent_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
		sa.Column('name', sa.String(length=255), nullable=False),
		sa.Column('slug', sa.String(length=255), nullable=False),
		sa.Column('description', sa.Text(), nullable=True),
		sa.Column('icon', sa.String(length=255), nullable=True),
		sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_categories_parent_id', 'categories', ['parent_id'], unique=False)
	op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)

	op.create_table(
		'courses',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('instructor_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
		sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
		sa.Column('title', sa.String(length=255), nullable=False),
		sa.Column('slug', sa.String(length=255), nullable=False),
		sa.Column('subtitle', sa.String(length=255), nullable=True),
		sa.Column('description', sa.Text(), nullable=True),
		sa.Column('thumbnail', sa.String(length=512), nullable=True),
		sa.Column('preview_video', sa.String(length=512), nullable=True),
		sa.Column('type', sa.String(length=16), nullable=False, server_default='self_paced'),
		sa.Column('level', sa.String(length=16), nullable=False, server_default='all_levels'),
		sa.Column('language', sa.String(length=8), nullable=False, server_default='id'),
		_money('price'),
		_money('discount_price', nullable=True),
		sa.Column('requirements', sa.JSON(), nullable=True),
		sa.Column('outcomes', sa.JSON(), nullable=True),
		sa.Column('target_audience', sa.JSON(), nullable=True),
		sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
		sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('total_duration', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('total_lessons', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('total_enrollments', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('average_rating', sa.Numeric(3, 2), nullable=False, server_default='0'),
		sa.Column('total_reviews', sa.Integer(), nullable=False, server_default='0'),
		_created_at(),
		_updated_at(),
		sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
	)
	op.create_index('ix_courses_instructor_id', 'courses', ['instructor_id'], unique=False)
	op.create_index('ix_courses_category_id', 'courses', ['category_id'], unique=False)
	op.create_index('ix_courses_title', 'courses', ['title'], unique=False)
	op.create_index('ix_courses_slug', 'courses', ['slug'], unique=True)
	op.create_index('ix_courses_status', 'courses', ['status'], unique=False)
	op.create_index('ix_courses_deleted_at', 'courses', ['deleted_at'], unique=False)

	op.create_table(
		'sections',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
		sa.Column('title', sa.String(length=255), nullable=False),
		sa.Column('description', sa.Text(), nullable=True),
		sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_sections_course_id', 'sections', ['course_id'], unique=False)

	op.create_table(
		'lessons',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('section_id', sa.Integer(), sa.ForeignKey('sections.id', ondelete='CASCADE'), nullable=False),
		sa.Column('title', sa.String(length=255), nullable=False),
		sa.Column('type', sa.String(length=16), nullable=False, server_default='video'),
		sa.Column('content', sa.Text(), nullable=True),
		sa.Column('video_url', sa.String(length=512), nullable=True),
		sa.Column('video_provider', sa.String(length=16), nullable=True),
		sa.Column('duration', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('is_free', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.true()),
		sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_lessons_section_id', 'lessons', ['section_id'], unique=False)

	op.create_table(
		'attachments',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('lesson_id', sa.Integer(), sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False),
		sa.Column('title', sa.String(length=255), nullable=False),
		sa.Column('file_path', sa.String(length=512), nullable=False),
		sa.Column('file_name', sa.String(length=255), nullable=False),
		sa.Column('file_type', sa.String(length=128), nullable=True),
		sa.Column('file_size', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
		_created_at(),
	)
	op.create_index('ix_attachments_lesson_id', 'attachments', ['lesson_id'], unique=False)

	# Cohorts
	op.create_table(
		'batches',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('instructor_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
		sa.Column('name', sa.String(length=255), nullable=False),
		sa.Column('slug', sa.String(length=255), nullable=False),
		sa.Column('class_code', sa.String(length=6), nullable=True),
		sa.Column('description', sa.Text(), nullable=True),
		sa.Column('type', sa.String(length=16), nullable=False, server_default='structured'),
		sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
		sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
		sa.Column('enrollment_start_date', sa.DateTime(timezone=True), nullable=True),
		sa.Column('enrollment_end_date', sa.DateTime(timezone=True), nullable=True),
		sa.Column('max_students', sa.Integer(), nullable=True),
		sa.Column('current_students', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
		sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
		sa.Column('auto_approve', sa.Boolean(), nullable=False, server_default=sa.true()),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_batches_instructor_id', 'batches', ['instructor_id'], unique=False)
	op.create_index('ix_batches_slug', 'batches', ['slug'], unique=True)
	op.create_index('ix_batches_class_code', 'batches', ['class_code'], unique=True)
	op.create_index('ix_batches_type', 'batches', ['type'], unique=False)
	op.create_index('ix_batches_status', 'batches', ['status'], unique=False)

	op.create_table(
		'batch_course',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id', ondelete='CASCADE'), nullable=False),
		sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
		sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.true()),
		_created_at(),
		sa.UniqueConstraint('batch_id', 'course_id', name='uq_batch_course'),
	)
	op.create_index('ix_batch_course_batch_id', 'batch_course', ['batch_id'], unique=False)
	op.create_index('ix_batch_course_course_id', 'batch_course', ['course_id'], unique=False)

	op.create_table(
		'batch_instructor',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id', ondelete='CASCADE'), nullable=False),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
		sa.Column('role', sa.String(length=16), nullable=False, server_default='instructor'),
		_created_at(),
		sa.UniqueConstraint('batch_id', 'user_id', name='uq_batch_instructor'),
	)
	op.create_index('ix_batch_instructor_batch_id', 'batch_instructor', ['batch_id'], unique=False)
	op.create_index('ix_batch_instructor_user_id', 'batch_instructor', ['user_id'], unique=False)

	# Commerce
	op.create_table(
		'orders',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
		sa.Column('order_number', sa.String(length=32), nullable=False),
		_money('subtotal'),
		_money('discount'),
		_money('tax'),
		_money('total'),
		sa.Column('currency', sa.String(length=3), nullable=False, server_default='IDR'),
		sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
		sa.Column('payment_method', sa.String(length=64), nullable=True),
		sa.Column('provider_payment_id', sa.String(length=128), nullable=True),
		sa.Column('coupon_code', sa.String(length=64), nullable=True),
		sa.Column('billing_name', sa.String(length=255), nullable=True),
		sa.Column('billing_email', sa.String(length=255), nullable=True),
		sa.Column('billing_phone', sa.String(length=32), nullable=True),
		sa.Column('billing_address', sa.String(length=512), nullable=True),
		sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_orders_user_id', 'orders', ['user_id'], unique=False)
	op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
	op.create_index('ix_orders_status', 'orders', ['status'], unique=False)
	op.create_index('ix_orders_provider_payment_id', 'orders', ['provider_payment_id'], unique=False)

	op.create_table(
		'order_items',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
		sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='SET NULL'), nullable=True),
		sa.Column('course_title', sa.String(length=255), nullable=False),
		sa.Column('price', sa.Numeric(12, 2), nullable=False),
		_money('discount_price', nullable=True),
		_created_at(),
	)
	op.create_index('ix_order_items_order_id', 'order_items', ['order_id'], unique=False)
	op.create_index('ix_order_items_course_id', 'order_items', ['course_id'], unique=False)

	op.create_table(
		'payments',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
		sa.Column('transaction_id', sa.String(length=128), nullable=False),
		sa.Column('payment_gateway', sa.String(length=32), nullable=False, server_default='unknown'),
		sa.Column('payment_method', sa.String(length=64), nullable=True),
		_money('amount'),
		sa.Column('currency', sa.String(length=3), nullable=False, server_default='IDR'),
		sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
		sa.Column('gateway_response', sa.JSON(), nullable=True),
		sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_payments_order_id', 'payments', ['order_id'], unique=False)
	op.create_index('ix_payments_transaction_id', 'payments', ['transaction_id'], unique=True)

	op.create_table(
		'enrollments',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
		sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=True),
		sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id', ondelete='SET NULL'), nullable=True),
		sa.Column('order_item_id', sa.Integer(), sa.ForeignKey('order_items.id', ondelete='SET NULL'), nullable=True),
		sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('progress_percentage', sa.Numeric(5, 2), nullable=False, server_default='0'),
		sa.Column('completed_lessons', sa.JSON(), nullable=True),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_enrollments_user_id', 'enrollments', ['user_id'], unique=False)
	op.create_index('ix_enrollments_course_id', 'enrollments', ['course_id'], unique=False)
	op.create_index('ix_enrollments_batch_id', 'enrollments', ['batch_id'], unique=False)
	op.create_index('ix_enrollments_order_item_id', 'enrollments', ['order_item_id'], unique=False)

	op.create_table(
		'carts',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
		_money('subtotal'),
		_money('discount'),
		_money('total'),
		sa.Column('coupon_code', sa.String(length=64), nullable=True),
		_created_at(),
		_updated_at(),
	)
	op.create_table(
		'cart_items',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('cart_id', sa.Integer(), sa.ForeignKey('carts.id', ondelete='CASCADE'), nullable=False),
		sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
		sa.Column('price', sa.Numeric(12, 2), nullable=False),
		_created_at(),
		sa.UniqueConstraint('cart_id', 'course_id', name='uq_cart_items_cart_course'),
	)
	op.create_index('ix_cart_items_cart_id', 'cart_items', ['cart_id'], unique=False)

	# Coursework
	op.create_table(
		'assignments',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id', ondelete='CASCADE'), nullable=False),
		sa.Column('lesson_id', sa.Integer(), sa.ForeignKey('lessons.id', ondelete='SET NULL'), nullable=True),
		sa.Column('title', sa.String(length=255), nullable=False),
		sa.Column('description', sa.Text(), nullable=True),
		sa.Column('instructions', sa.Text(), nullable=True),
		sa.Column('type', sa.String(length=16), nullable=False, server_default='assignment'),
		sa.Column('content', sa.JSON(), nullable=True),
		sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
		sa.Column('available_from', sa.DateTime(timezone=True), nullable=True),
		sa.Column('max_points', sa.Integer(), nullable=False, server_default='100'),
		sa.Column('gradable', sa.Boolean(), nullable=False, server_default=sa.true()),
		sa.Column('allow_multiple_submissions', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.true()),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_assignments_batch_id', 'assignments', ['batch_id'], unique=False)
	op.create_index('ix_assignments_lesson_id', 'assignments', ['lesson_id'], unique=False)
	op.create_index('ix_assignments_due_date', 'assignments', ['due_date'], unique=False)

	op.create_table(
		'submissions',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('assignment_id', sa.Integer(), sa.ForeignKey('assignments.id', ondelete='CASCADE'), nullable=False),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
		sa.Column('content', sa.Text(), nullable=True),
		sa.Column('files', sa.JSON(), nullable=True),
		sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
		sa.Column('points_awarded', sa.Numeric(6, 2), nullable=True),
		sa.Column('feedback', sa.Text(), nullable=True),
		sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('graded_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
		_created_at(),
		_updated_at(),
		sa.UniqueConstraint('assignment_id', 'user_id', name='uq_submissions_assignment_user'),
	)
	op.create_index('ix_submissions_assignment_id', 'submissions', ['assignment_id'], unique=False)
	op.create_index('ix_submissions_user_id', 'submissions', ['user_id'], unique=False)
	op.create_index('ix_submissions_status', 'submissions', ['status'], unique=False)

	op.create_table(
		'grades',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id', ondelete='CASCADE'), nullable=False),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
		sa.Column('overall_score', sa.Numeric(5, 2), nullable=True),
		sa.Column('letter_grade', sa.String(length=2), nullable=True),
		sa.Column('final_comment', sa.Text(), nullable=True),
		sa.Column('grade_breakdown', sa.JSON(), nullable=True),
		sa.Column('status', sa.String(length=16), nullable=False, server_default='in_progress'),
		sa.Column('graded_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
		sa.Column('finalized_at', sa.DateTime(timezone=True), nullable=True),
		_created_at(),
		_updated_at(),
		sa.UniqueConstraint('batch_id', 'user_id', name='uq_grades_batch_user'),
	)
	op.create_index('ix_grades_batch_id', 'grades', ['batch_id'], unique=False)
	op.create_index('ix_grades_user_id', 'grades', ['user_id'], unique=False)

	op.create_table(
		'discussions',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('batch_id', sa.Integer(), sa.ForeignKey('batches.id', ondelete='CASCADE'), nullable=True),
		sa.Column('lesson_id', sa.Integer(), sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=True),
		sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
		sa.Column('parent_id', sa.Integer(), sa.ForeignKey('discussions.id', ondelete='CASCADE'), nullable=True),
		sa.Column('title', sa.String(length=255), nullable=True),
		sa.Column('content', sa.Text(), nullable=False),
		sa.Column('type', sa.String(length=16), nullable=False, server_default='discussion'),
		sa.Column('is_pinned', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.true()),
		sa.Column('is_locked', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('replies_count', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('views_count', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('upvotes_count', sa.Integer(), nullable=False, server_default='0'),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_discussions_batch_id', 'discussions', ['batch_id'], unique=False)
	op.create_index('ix_discussions_lesson_id', 'discussions', ['lesson_id'], unique=False)
	op.create_index('ix_discussions_user_id', 'discussions', ['user_id'], unique=False)
	op.create_index('ix_discussions_parent_id', 'discussions', ['parent_id'], unique=False)

	# Learning paths
	op.create_table(
		'learning_paths',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('title', sa.String(length=255), nullable=False),
		sa.Column('slug', sa.String(length=255), nullable=False),
		sa.Column('description', sa.Text(), nullable=True),
		sa.Column('thumbnail', sa.String(length=512), nullable=True),
		sa.Column('level', sa.String(length=16), nullable=False, server_default='beginner'),
		sa.Column('estimated_hours', sa.Integer(), nullable=True),
		sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
		sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
		_created_at(),
		_updated_at(),
	)
	op.create_index('ix_learning_paths_slug', 'learning_paths', ['slug'], unique=True)

	op.create_table(
		'learning_path_items',
		sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
		sa.Column('learning_path_id', sa.Integer(), sa.ForeignKey('learning_paths.id', ondelete='CASCADE'), nullable=False),
		sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
		sa.Column('step_number', sa.Integer(), nullable=False),
		sa.Column('step_title', sa.String(length=255), nullable=True),
		sa.Column('step_description', sa.Text(), nullable=True),
		sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.true()),
		sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
		_created_at(),
		sa.UniqueConstraint('learning_path_id', 'course_id', name='uq_learning_path_items_path_course'),
	)
	op.create_index('ix_learning_path_items_learning_path_id', 'learning_path_items', ['learning_path_id'], unique=False)
	op.create_index('ix_learning_path_items_course_id', 'learning_path_items', ['course_id'], unique=False)


def downgrade() -> None:
	for table in (
		'learning_path_items',
		'learning_paths',
		'discussions',
		'grades',
		'submissions',
		'assignments',
		'cart_items',
		'carts',
		'enrollments',
		'payments',
		'order_items',
		'orders',
		'batch_instructor',
		'batch_course',
		'batches',
		'attachments',
		'lessons',
		'sections',
		'courses',
		'categories',
		'refresh_tokens',
		'profiles',
		'role_permissions',
		'user_roles',
		'permissions',
		'roles',
		'users',
	):
		op.drop_table(table)
