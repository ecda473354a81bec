"""
SlangDict Database Models
PostgreSQL schema (SQLite for tests and local runs)
"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey,
    CheckConstraint, Index, UniqueConstraint, Enum, false,
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

# =============================================================================
# Enums
# =============================================================================

class UserRole(str, PyEnum):
    user = "user"
    moderator = "moderator"
    admin = "admin"


class VoteDirection(str, PyEnum):
    up = "up"
    down = "down"


MODERATION_ROLES = frozenset({UserRole.moderator, UserRole.admin})


# =============================================================================
# Users (mirrored from the external auth provider)
# =============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)  # external auth user id
    username = Column(String(50), nullable=False)
    role = Column(Enum(UserRole, name="user_role"), default=UserRole.user, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("username", name="uq_users_username"),
    )


# =============================================================================
# Terms & Definitions
# =============================================================================

class Term(Base):
    __tablename__ = "terms"

    id = Column(Integer, primary_key=True)
    term = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    source_url = Column(Text)
    submitted_by = Column(String(255), ForeignKey("users.id"))  # NULL = archive term
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    submitter = relationship("User")
    definitions = relationship(
        "Definition",
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Definition.id",
    )
    comments = relationship(
        "Comment",
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tags = relationship("Tag", secondary="term_tags", back_populates="terms")

    __table_args__ = (
        UniqueConstraint("slug", name="uq_terms_slug"),
        Index("ix_terms_created_at", "created_at"),
    )

    @property
    def is_archive(self) -> bool:
        return self.submitted_by is None


class Definition(Base):
    __tablename__ = "definitions"

    id = Column(Integer, primary_key=True)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)
    text = Column(Text, nullable=False)
    example = Column(Text)
    # Denormalized from definition_votes; written only by services.votes
    upvotes = Column(Integer, default=0, server_default="0", nullable=False)
    downvotes = Column(Integer, default=0, server_default="0", nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    term = relationship("Term", back_populates="definitions")
    references = relationship(
        "DefinitionReference",
        back_populates="definition",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("upvotes >= 0", name="ck_definitions_upvotes_non_negative"),
        CheckConstraint("downvotes >= 0", name="ck_definitions_downvotes_non_negative"),
        Index("ix_definitions_term_id", "term_id"),
    )


class DefinitionReference(Base):
    """A term mentioned inside a definition (produced by the seeder only)."""
    __tablename__ = "definition_references"

    id = Column(Integer, primary_key=True)
    definition_id = Column(Integer, ForeignKey("definitions.id", ondelete="CASCADE"), nullable=False)
    referenced_term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    definition = relationship("Definition", back_populates="references")
    referenced_term = relationship("Term")

    __table_args__ = (
        UniqueConstraint(
            "definition_id",
            "referenced_term_id",
            name="uq_definition_references_pair",
        ),
        Index("ix_definition_references_definition_id", "definition_id"),
    )


# =============================================================================
# Comments
# =============================================================================

class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"))
    content = Column(Text, nullable=False)
    # Denormalized from comment_votes; written only by services.votes
    upvotes = Column(Integer, default=0, server_default="0", nullable=False)
    downvotes = Column(Integer, default=0, server_default="0", nullable=False)
    is_deleted = Column(Boolean, default=False, server_default=false(), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    term = relationship("Term", back_populates="comments")
    author = relationship("User")
    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship("Comment", back_populates="parent", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("upvotes >= 0", name="ck_comments_upvotes_non_negative"),
        CheckConstraint("downvotes >= 0", name="ck_comments_downvotes_non_negative"),
        Index("ix_comments_term_id", "term_id"),
        Index("ix_comments_parent_id", "parent_id"),
        Index("ix_comments_user_id", "user_id"),
    )


# =============================================================================
# Vote Ledgers
# =============================================================================

class DefinitionVote(Base):
    __tablename__ = "definition_votes"

    id = Column(Integer, primary_key=True)
    definition_id = Column(Integer, ForeignKey("definitions.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    vote_type = Column(Enum(VoteDirection, name="vote_type"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("definition_id", "user_id", name="uq_definition_votes_target_user"),
    )


class CommentVote(Base):
    __tablename__ = "comment_votes"

    id = Column(Integer, primary_key=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    vote_type = Column(Enum(VoteDirection, name="vote_type"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_votes_target_user"),
    )


# =============================================================================
# Tags & Bookmarks
# =============================================================================

class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    terms = relationship("Term", secondary="term_tags", back_populates="tags")

    __table_args__ = (
        UniqueConstraint("name", name="uq_tags_name"),
        UniqueConstraint("slug", name="uq_tags_slug"),
    )


class TermTag(Base):
    __tablename__ = "term_tags"

    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)


class Bookmark(Base):
    __tablename__ = "bookmarks"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    term = relationship("Term")

    __table_args__ = (
        UniqueConstraint("user_id", "term_id", name="uq_bookmarks_user_term"),
    )


__all__ = [
    "Base",
    "UserRole",
    "VoteDirection",
    "MODERATION_ROLES",
    "User",
    "Term",
    "Definition",
    "DefinitionReference",
    "Comment",
    "DefinitionVote",
    "CommentVote",
    "Tag",
    "TermTag",
    "Bookmark",
]
