"""
Blog Backend — Post Service Unit Tests
========================================

What:  Tests for PostService business logic (list, get, create, update, delete).
How:   Mock DB sessions and a patched file service (no real DB or disk).

What we test:
    ✅ Malformed and unknown ids → NotFoundError
    ✅ author / authorName come from the identity, never from input
    ✅ Only the author may update or delete (PermissionDeniedError otherwise)
    ✅ Empty update fields keep their values; new image replaces the path
    ✅ Concurrent delete during update/delete → NotFoundError
    ✅ Fresh image is cleaned up when the database write fails
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.exceptions import (
    DatabaseError,
    InvalidTokenError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.post import Post
from app.models.user import User
from app.services.post_service import PostService, parse_post_id


def make_post(identity, **overrides) -> Post:
    now = datetime.now(timezone.utc)
    fields = dict(
        id=uuid4(),
        title="Hi",
        content="World",
        image=None,
        author=identity.user_id,
        author_name=identity.username,
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Post(**fields)


def load_result(post):
    result = MagicMock()
    result.scalar_one_or_none.return_value = post
    return result


def assign_defaults_on_flush(session):
    """Mimics the column defaults the database session applies on flush."""

    async def flush():
        for call in session.add.call_args_list:
            obj = call.args[0]
            now = datetime.now(timezone.utc)
            obj.id = obj.id or uuid4()
            obj.created_at = obj.created_at or now
            obj.updated_at = obj.updated_at or now

    session.flush.side_effect = flush


class TestParsePostId:

    def test_valid_uuid(self):
        pid = uuid4()
        assert parse_post_id(str(pid)) == pid

    @pytest.mark.parametrize("raw", ["42", "not-a-uuid", ""])
    def test_malformed_id_is_not_found(self, raw):
        with pytest.raises(NotFoundError, match="Post not found"):
            parse_post_id(raw)


class TestPostServiceRead:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_get_post(self, mock_db_session, identity):
        post = make_post(identity)
        mock_db_session.execute.return_value = load_result(post)

        result = await self.service.get_post(mock_db_session, str(post.id))

        assert result.id == post.id
        assert result.author == identity.user_id
        assert result.author_name == "alice"

    @pytest.mark.asyncio
    async def test_get_post_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = load_result(None)

        with pytest.raises(NotFoundError):
            await self.service.get_post(mock_db_session, str(uuid4()))

    @pytest.mark.asyncio
    async def test_get_post_malformed_id_skips_database(self, mock_db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_post(mock_db_session, "abc")
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_posts_preserves_query_order(self, mock_db_session, identity):
        now = datetime.now(timezone.utc)
        newer = make_post(identity, title="newer", created_at=now)
        older = make_post(identity, title="older", created_at=now - timedelta(minutes=1))
        result = MagicMock()
        result.scalars.return_value.all.return_value = [newer, older]
        mock_db_session.execute.return_value = result

        posts = await self.service.list_posts(mock_db_session)

        assert [p.title for p in posts] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_list_posts_database_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await self.service.list_posts(mock_db_session)

    @pytest.mark.asyncio
    async def test_list_user_posts_filters_by_author(self, mock_db_session, identity):
        result = MagicMock()
        result.scalars.return_value.all.return_value = [make_post(identity)]
        mock_db_session.execute.return_value = result

        posts = await self.service.list_user_posts(mock_db_session, identity)

        assert len(posts) == 1
        statement = mock_db_session.execute.call_args[0][0]
        assert "author_id" in str(statement)


class TestPostServiceCreate:

    def setup_method(self):
        self.service = PostService()

    @pytest.fixture(autouse=True)
    def known_author(self, mock_db_session, identity):
        mock_db_session.get.return_value = User(
            id=identity.user_id, username=identity.username, email="a@x.com", password_hash="hash"
        )

    @pytest.mark.asyncio
    async def test_create_without_image(self, mock_db_session, identity):
        assign_defaults_on_flush(mock_db_session)

        with patch("app.services.post_service.file_service") as mock_files:
            mock_files.save_image = AsyncMock()
            result = await self.service.create_post(mock_db_session, identity, "Hi", "World")

        mock_files.save_image.assert_not_awaited()
        assert result.title == "Hi"
        assert result.content == "World"
        assert result.image is None
        assert result.author == identity.user_id
        assert result.author_name == identity.username

    @pytest.mark.asyncio
    async def test_create_with_image(self, mock_db_session, identity, sample_image_bytes):
        assign_defaults_on_flush(mock_db_session)

        with patch("app.services.post_service.file_service") as mock_files:
            mock_files.save_image = AsyncMock(return_value="/uploads/1700000000000-ab12cd34.png")
            result = await self.service.create_post(
                mock_db_session, identity, "Hi", "World", image=("a.png", sample_image_bytes)
            )

        mock_files.save_image.assert_awaited_once_with("a.png", sample_image_bytes)
        assert result.image == "/uploads/1700000000000-ab12cd34.png"

    @pytest.mark.asyncio
    async def test_create_rejected_image_writes_nothing(self, mock_db_session, identity):
        with patch("app.services.post_service.file_service") as mock_files:
            mock_files.save_image = AsyncMock(side_effect=ValidationError("File type '.pdf' is not supported."))
            with pytest.raises(ValidationError):
                await self.service.create_post(
                    mock_db_session, identity, "Hi", "World", image=("a.pdf", b"%PDF")
                )

        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_db_failure_cleans_up_image(self, mock_db_session, identity, sample_image_bytes):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("gone"))

        with patch("app.services.post_service.file_service") as mock_files:
            mock_files.save_image = AsyncMock(return_value="/uploads/x.png")
            mock_files.cleanup_file = AsyncMock()
            with pytest.raises(DatabaseError):
                await self.service.create_post(
                    mock_db_session, identity, "Hi", "World", image=("a.png", sample_image_bytes)
                )

        mock_files.cleanup_file.assert_awaited_once_with("/uploads/x.png")


class TestPostServiceUpdate:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_update_by_author(self, mock_db_session, identity):
        post = make_post(identity)
        mock_db_session.execute.return_value = load_result(post)

        result = await self.service.update_post(
            mock_db_session, identity, str(post.id), title="New title"
        )

        assert result.title == "New title"
        assert result.content == "World"
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_empty_fields_keep_values(self, mock_db_session, identity):
        post = make_post(identity, image="/uploads/old.png")
        mock_db_session.execute.return_value = load_result(post)

        result = await self.service.update_post(
            mock_db_session, identity, str(post.id), title="", content=None
        )

        assert result.title == "Hi"
        assert result.content == "World"
        assert result.image == "/uploads/old.png"

    @pytest.mark.asyncio
    async def test_update_new_image_replaces_reference(self, mock_db_session, identity, sample_image_bytes):
        post = make_post(identity, image="/uploads/old.png")
        mock_db_session.execute.return_value = load_result(post)

        with patch("app.services.post_service.file_service") as mock_files:
            mock_files.save_image = AsyncMock(return_value="/uploads/new.png")
            mock_files.cleanup_file = AsyncMock()
            result = await self.service.update_post(
                mock_db_session, identity, str(post.id), image=("b.png", sample_image_bytes)
            )

        assert result.image == "/uploads/new.png"
        # The old file is left alone
        mock_files.cleanup_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_by_other_user_forbidden(self, mock_db_session, identity, other_identity):
        post = make_post(identity)
        mock_db_session.execute.return_value = load_result(post)

        with pytest.raises(PermissionDeniedError):
            await self.service.update_post(
                mock_db_session, other_identity, str(post.id), title="pwned"
            )

        assert post.title == "Hi"
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_forbidden_checked_before_image_saved(
        self, mock_db_session, identity, other_identity, sample_image_bytes
    ):
        post = make_post(identity)
        mock_db_session.execute.return_value = load_result(post)

        with patch("app.services.post_service.file_service") as mock_files:
            mock_files.save_image = AsyncMock()
            with pytest.raises(PermissionDeniedError):
                await self.service.update_post(
                    mock_db_session, other_identity, str(post.id), image=("a.png", sample_image_bytes)
                )

        mock_files.save_image.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_missing_post(self, mock_db_session, identity):
        mock_db_session.execute.return_value = load_result(None)

        with pytest.raises(NotFoundError):
            await self.service.update_post(mock_db_session, identity, str(uuid4()), title="x")

    @pytest.mark.asyncio
    async def test_update_loses_race_with_delete(self, mock_db_session, identity):
        """The row vanished between the read and the write."""
        post = make_post(identity)
        mock_db_session.execute.return_value = load_result(post)
        mock_db_session.flush.side_effect = StaleDataError("expected to update 1 row(s); 0 were matched")

        with pytest.raises(NotFoundError):
            await self.service.update_post(mock_db_session, identity, str(post.id), title="x")


class TestPostServiceDelete:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_delete_by_author(self, mock_db_session, identity):
        post = make_post(identity)
        deleted = MagicMock(rowcount=1)
        mock_db_session.execute.side_effect = [load_result(post), deleted]

        result = await self.service.delete_post(mock_db_session, identity, str(post.id))

        assert result.message == "Post deleted successfully"
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_delete_by_other_user_forbidden(self, mock_db_session, identity, other_identity):
        post = make_post(identity)
        mock_db_session.execute.return_value = load_result(post)

        with pytest.raises(PermissionDeniedError):
            await self.service.delete_post(mock_db_session, other_identity, str(post.id))

        # Only the lookup ran, no DELETE
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_delete_missing_post(self, mock_db_session, identity):
        mock_db_session.execute.return_value = load_result(None)

        with pytest.raises(NotFoundError):
            await self.service.delete_post(mock_db_session, identity, str(uuid4()))

    @pytest.mark.asyncio
    async def test_delete_loses_race(self, mock_db_session, identity):
        post = make_post(identity)
        mock_db_session.execute.side_effect = [load_result(post), MagicMock(rowcount=0)]

        with pytest.raises(NotFoundError):
            await self.service.delete_post(mock_db_session, identity, str(post.id))


class TestPostServiceCreateAuthor:
    """The author named by the token must exist before anything is written."""

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_unknown_author_rejected_before_image_saved(
        self, mock_db_session, identity, sample_image_bytes
    ):
        mock_db_session.get.return_value = None

        with patch("app.services.post_service.file_service") as mock_files:
            mock_files.save_image = AsyncMock()
            with pytest.raises(InvalidTokenError):
                await self.service.create_post(
                    mock_db_session, identity, "Hi", "World", image=("a.png", sample_image_bytes)
                )

        mock_db_session.get.assert_awaited_once_with(User, identity.user_id)
        mock_files.save_image.assert_not_awaited()
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_foreign_key_violation_rejected_and_image_removed(
        self, mock_db_session, identity, sample_image_bytes
    ):
        """The author row disappeared between the lookup and the insert."""
        mock_db_session.get.return_value = MagicMock(spec=User)
        mock_db_session.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception("FOREIGN KEY constraint failed")
        )

        with patch("app.services.post_service.file_service") as mock_files:
            mock_files.save_image = AsyncMock(return_value="/uploads/x.png")
            mock_files.cleanup_file = AsyncMock()
            with pytest.raises(InvalidTokenError):
                await self.service.create_post(
                    mock_db_session, identity, "Hi", "World", image=("a.png", sample_image_bytes)
                )

        mock_files.cleanup_file.assert_awaited_once_with("/uploads/x.png")
