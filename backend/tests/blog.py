"""Sample blog domain shared by the tests."""

from typing import Optional

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from restforge import ResourceController, Resource, Settings, create_app
from restforge.persistence import DatabaseConfig


class Base(DeclarativeBase):
    pass


article_tags = Table(
    "article_tags",
    Base.metadata,
    Column("article_id", ForeignKey("articles.id"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id"), primary_key=True),
)


class Author(Base):
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))

    articles: Mapped[list["Article"]] = relationship(back_populates="author")


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    status: Mapped[str] = mapped_column(String(20), default="draft")
    views: Mapped[int] = mapped_column(Integer, default=0)
    locked: Mapped[bool] = mapped_column(Boolean, default=False)
    author_id: Mapped[int | None] = mapped_column(ForeignKey("authors.id"), nullable=True)

    author: Mapped[Author | None] = relationship(back_populates="articles")
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="article", cascade="all, delete-orphan"
    )
    tags: Mapped[list["Tag"]] = relationship(secondary=article_tags)


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    article_id: Mapped[int] = mapped_column(ForeignKey("articles.id"))
    body: Mapped[str] = mapped_column(String(500))
    approved: Mapped[bool] = mapped_column(Boolean, default=False)

    article: Mapped[Article] = relationship(back_populates="comments")


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))


category_links = Table(
    "category_links",
    Base.metadata,
    Column("source_id", ForeignKey("categories.id"), primary_key=True),
    Column("target_id", ForeignKey("categories.id"), primary_key=True),
)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    parent_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True)

    parent: Mapped[Optional["Category"]] = relationship(back_populates="children", remote_side=[id])
    children: Mapped[list["Category"]] = relationship(back_populates="parent")
    see_also: Mapped[list["Category"]] = relationship(
        secondary=category_links,
        primaryjoin="Category.id == category_links.c.source_id",
        secondaryjoin="Category.id == category_links.c.target_id",
    )


class ArticleController(ResourceController):
    model = Article


class CommentController(ResourceController):
    model = Comment


def build_app(database_url: str = "sqlite://"):
    """App factory used by the CLI tests."""
    settings = Settings(database=DatabaseConfig(database_url), disable_auth=True)
    return create_app(
        [
            Resource("/articles", ArticleController),
            Resource("/comments", CommentController, include=["index", "one"]),
        ],
        settings,
    )
