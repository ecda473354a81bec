"""Initial slang dictionary schema.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


USER_ROLES = ("user", "moderator", "admin")
VOTE_TYPES = ("up", "down")


def _enum_types(is_postgres: bool):
    if is_postgres:
        user_role = postgresql.ENUM(*USER_ROLES, name="user_role", create_type=False)
        vote_type = postgresql.ENUM(*VOTE_TYPES, name="vote_type", create_type=False)
        user_role.create(op.get_bind(), checkfirst=True)
        vote_type.create(op.get_bind(), checkfirst=True)
        return user_role, vote_type
    return sa.Enum(*USER_ROLES, name="user_role"), sa.Enum(*VOTE_TYPES, name="vote_type")


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"
    user_role, vote_type = _enum_types(is_postgres)

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=255), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "terms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("term", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("source_url", sa.Text()),
        sa.Column("submitted_by", sa.String(length=255), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("slug", name="uq_terms_slug"),
    )
    op.create_index("ix_terms_created_at", "terms", ["created_at"])

    op.create_table(
        "definitions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "term_id",
            sa.Integer(),
            sa.ForeignKey("terms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("example", sa.Text()),
        sa.Column("upvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("downvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("upvotes >= 0", name="ck_definitions_upvotes_non_negative"),
        sa.CheckConstraint("downvotes >= 0", name="ck_definitions_downvotes_non_negative"),
    )
    op.create_index("ix_definitions_term_id", "definitions", ["term_id"])

    op.create_table(
        "definition_references",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "definition_id",
            sa.Integer(),
            sa.ForeignKey("definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "referenced_term_id",
            sa.Integer(),
            sa.ForeignKey("terms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "definition_id",
            "referenced_term_id",
            name="uq_definition_references_pair",
        ),
    )
    op.create_index(
        "ix_definition_references_definition_id",
        "definition_references",
        ["definition_id"],
    )

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "term_id",
            sa.Integer(),
            sa.ForeignKey("terms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("comments.id", ondelete="CASCADE")),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("upvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("downvotes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("upvotes >= 0", name="ck_comments_upvotes_non_negative"),
        sa.CheckConstraint("downvotes >= 0", name="ck_comments_downvotes_non_negative"),
    )
    op.create_index("ix_comments_term_id", "comments", ["term_id"])
    op.create_index("ix_comments_parent_id", "comments", ["parent_id"])
    op.create_index("ix_comments_user_id", "comments", ["user_id"])

    op.create_table(
        "definition_votes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "definition_id",
            sa.Integer(),
            sa.ForeignKey("definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("vote_type", vote_type, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("definition_id", "user_id", name="uq_definition_votes_target_user"),
    )

    op.create_table(
        "comment_votes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "comment_id",
            sa.Integer(),
            sa.ForeignKey("comments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("vote_type", vote_type, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("comment_id", "user_id", name="uq_comment_votes_target_user"),
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("name", name="uq_tags_name"),
        sa.UniqueConstraint("slug", name="uq_tags_slug"),
    )

    op.create_table(
        "term_tags",
        sa.Column(
            "term_id",
            sa.Integer(),
            sa.ForeignKey("terms.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "tag_id",
            sa.Integer(),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "bookmarks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "term_id",
            sa.Integer(),
            sa.ForeignKey("terms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "term_id", name="uq_bookmarks_user_term"),
    )


def downgrade() -> None:
    op.drop_table("bookmarks")
    op.drop_table("term_tags")
    op.drop_table("tags")
    op.drop_table("comment_votes")
    op.drop_table("definition_votes")
    op.drop_index("ix_comments_user_id", table_name="comments")
    op.drop_index("ix_comments_parent_id", table_name="comments")
    op.drop_index("ix_comments_term_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_definition_references_definition_id", table_name="definition_references")
    op.drop_table("definition_references")
    op.drop_index("ix_definitions_term_id", table_name="definitions")
    op.drop_table("definitions")
    op.drop_index("ix_terms_created_at", table_name="terms")
    op.drop_table("terms")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        postgresql.ENUM(name="vote_type").drop(bind, checkfirst=True)
        postgresql.ENUM(name="user_role").drop(bind, checkfirst=True)
