"""
PhotoMemo Backend: Post Service Tests
=====================================

Uses the in-memory database and the fake object store from conftest; no
S3 calls are made. Storage base URL is https://cdn.test.

What we test:
    ✅ Create: per-owner numbering, attachment normalization, stored values echoed
    ✅ List / my / get: newest first, URLs resolved, legacy image_url fallback
    ✅ Update: owner only, partial, removed attachments deleted best effort
    ✅ Delete: owner only, every referenced object removed
    ✅ Malformed and unknown ids
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from photomemo.exceptions import FileStorageError, ForbiddenError, NotFoundError, ValidationError
from photomemo.models.post import Post
from photomemo.schemas.post import PostCreate, PostUpdate
from photomemo.services.post_service import PostService, parse_post_id

BASE = "https://cdn.test"


@pytest.fixture
def owners():
    return uuid.uuid4(), uuid.uuid4()


class TestCreatePost:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_numbers_are_per_owner(self, db_session, owners):
        alice, bob = owners

        first = await self.service.create_post(db_session, alice, PostCreate(title="a1"))
        second = await self.service.create_post(db_session, alice, PostCreate(title="a2"))
        other = await self.service.create_post(db_session, bob, PostCreate(title="b1"))

        assert (first.number, second.number, other.number) == (1, 2, 1)
        assert first.user == alice

    @pytest.mark.asyncio
    async def test_stored_values_are_echoed_unresolved(self, db_session, owners):
        data = PostCreate(title="t", content="c", fileUrl=["uploads/a.jpg", "", f"{BASE}/b.jpg"])

        post = await self.service.create_post(db_session, owners[0], data)

        assert post.file_url == ["uploads/a.jpg", f"{BASE}/b.jpg"]
        assert post.title == "t"
        assert post.content == "c"

    @pytest.mark.asyncio
    async def test_json_string_attachments(self, db_session, owners):
        data = PostCreate(fileUrl='["uploads/a.jpg", "uploads/b.jpg"]')
        post = await self.service.create_post(db_session, owners[0], data)
        assert post.file_url == ["uploads/a.jpg", "uploads/b.jpg"]

    @pytest.mark.asyncio
    async def test_missing_fields_default_to_empty(self, db_session, owners):
        post = await self.service.create_post(db_session, owners[0], PostCreate())
        assert post.title == ""
        assert post.content == ""
        assert post.file_url == []


class TestReadPosts:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_list_newest_first_with_resolved_urls(self, db_session, owners):
        alice, bob = owners
        now = datetime.now(timezone.utc)
        db_session.add_all([
            Post(user_id=alice, number=1, title="old", file_url=["uploads/a.jpg"],
                 created_at=now - timedelta(minutes=5)),
            Post(user_id=bob, number=1, title="new", file_url=["https://other.example/x.png"],
                 created_at=now),
        ])
        await db_session.flush()

        posts = await self.service.list_posts(db_session)

        assert [p.title for p in posts] == ["new", "old"]
        assert posts[0].file_url == ["https://other.example/x.png"]
        assert posts[1].file_url == [f"{BASE}/uploads/a.jpg"]
        assert posts[1].image_url is None

    @pytest.mark.asyncio
    async def test_list_filtered_by_owner(self, db_session, owners):
        alice, bob = owners
        await self.service.create_post(db_session, alice, PostCreate(title="mine"))
        await self.service.create_post(db_session, bob, PostCreate(title="theirs"))

        posts = await self.service.list_posts(db_session, owner_id=alice)

        assert [p.title for p in posts] == ["mine"]

    @pytest.mark.asyncio
    async def test_legacy_image_url_fallback(self, db_session, owners):
        post = Post(user_id=owners[0], number=1, file_url=[], image_url="uploads/legacy.jpg")
        db_session.add(post)
        await db_session.flush()

        fetched = await self.service.get_post(db_session, str(post.id))

        assert fetched.file_url == [f"{BASE}/uploads/legacy.jpg"]
        assert fetched.image_url == f"{BASE}/uploads/legacy.jpg"

        listed = await self.service.list_posts(db_session)
        assert listed[0].image_url == f"{BASE}/uploads/legacy.jpg"

    @pytest.mark.asyncio
    async def test_get_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_post(db_session, str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.get_post(db_session, "not-an-id")


class TestUpdatePost:

    def setup_method(self):
        self.service = PostService()

    async def _seed(self, db_session, owner, files):
        created = await self.service.create_post(
            db_session, owner, PostCreate(title="before", content="body", fileUrl=files)
        )
        return str(created.id)

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, db_session, owners, fake_storage):
        post_id = await self._seed(db_session, owners[0], ["uploads/a.jpg"])

        updated = await self.service.update_post(
            db_session, post_id, owners[0], PostUpdate(title="after")
        )

        assert updated.title == "after"
        assert updated.content == "body"
        assert updated.file_url == ["uploads/a.jpg"]
        fake_storage.delete_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_null_file_url_clears_and_deletes(self, db_session, owners, fake_storage):
        post_id = await self._seed(db_session, owners[0], ["uploads/a.jpg", "uploads/b.jpg"])

        updated = await self.service.update_post(
            db_session, post_id, owners[0], PostUpdate.model_validate({"fileUrl": None})
        )

        assert updated.file_url == []
        assert updated.title == "before"
        deleted = sorted(call.args[0] for call in fake_storage.delete_object.await_args_list)
        assert deleted == ["uploads/a.jpg", "uploads/b.jpg"]

    @pytest.mark.asyncio
    async def test_null_image_url_clears_legacy_key(self, db_session, owners, fake_storage):
        post = Post(user_id=owners[0], number=1, file_url=[], image_url="uploads/legacy.jpg")
        db_session.add(post)
        await db_session.flush()

        updated = await self.service.update_post(
            db_session, str(post.id), owners[0], PostUpdate.model_validate({"imageUrl": None})
        )

        assert updated.image_url is None
        fake_storage.delete_object.assert_awaited_once_with("uploads/legacy.jpg")

    @pytest.mark.asyncio
    async def test_null_text_fields_become_empty(self, db_session, owners, fake_storage):
        post_id = await self._seed(db_session, owners[0], ["uploads/a.jpg"])

        updated = await self.service.update_post(
            db_session, post_id, owners[0],
            PostUpdate.model_validate({"title": None, "content": None}),
        )

        assert updated.title == ""
        assert updated.content == ""
        assert updated.file_url == ["uploads/a.jpg"]
        fake_storage.delete_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_removed_attachments_are_deleted(self, db_session, owners, fake_storage):
        post_id = await self._seed(db_session, owners[0], ["uploads/a.jpg", "uploads/b.jpg"])

        # A resolved URL for a kept key must not count as a removal
        updated = await self.service.update_post(
            db_session, post_id, owners[0],
            PostUpdate(fileUrl=[f"{BASE}/uploads/b.jpg", "uploads/c.jpg"]),
        )

        assert updated.file_url == [f"{BASE}/uploads/b.jpg", "uploads/c.jpg"]
        fake_storage.delete_object.assert_awaited_once_with("uploads/a.jpg")

    @pytest.mark.asyncio
    async def test_storage_failure_does_not_block_update(self, db_session, owners, fake_storage):
        post_id = await self._seed(db_session, owners[0], ["uploads/a.jpg"])
        fake_storage.delete_object.side_effect = FileStorageError(message="S3 down")

        updated = await self.service.update_post(
            db_session, post_id, owners[0], PostUpdate(fileUrl=[])
        )

        assert updated.file_url == []
        fake_storage.delete_object.assert_awaited_once_with("uploads/a.jpg")

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, db_session, owners, fake_storage):
        post_id = await self._seed(db_session, owners[0], ["uploads/a.jpg"])

        with pytest.raises(ForbiddenError):
            await self.service.update_post(db_session, post_id, owners[1], PostUpdate(fileUrl=[]))
        fake_storage.delete_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_post(self, db_session, owners, fake_storage):
        with pytest.raises(NotFoundError):
            await self.service.update_post(
                db_session, str(uuid.uuid4()), owners[0], PostUpdate(title="x")
            )


class TestDeletePost:

    def setup_method(self):
        self.service = PostService()

    @pytest.mark.asyncio
    async def test_delete_removes_row_and_objects(self, db_session, owners, fake_storage):
        post = Post(
            user_id=owners[0], number=1,
            file_url=["uploads/a.jpg", f"{BASE}/uploads/b.jpg"],
            image_url="uploads/a.jpg",
        )
        db_session.add(post)
        await db_session.flush()

        deleted_id = await self.service.delete_post(db_session, str(post.id), owners[0])

        assert deleted_id == post.id
        assert await db_session.get(Post, post.id) is None
        deleted = sorted(call.args[0] for call in fake_storage.delete_object.await_args_list)
        assert deleted == ["uploads/a.jpg", "uploads/b.jpg"]

    @pytest.mark.asyncio
    async def test_delete_survives_storage_failure(self, db_session, owners, fake_storage):
        post = Post(user_id=owners[0], number=1, file_url=["uploads/a.jpg"])
        db_session.add(post)
        await db_session.flush()
        fake_storage.delete_object.side_effect = FileStorageError(message="S3 down")

        await self.service.delete_post(db_session, str(post.id), owners[0])

        assert await db_session.get(Post, post.id) is None

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, db_session, owners, fake_storage):
        post = Post(user_id=owners[0], number=1, file_url=["uploads/a.jpg"])
        db_session.add(post)
        await db_session.flush()

        with pytest.raises(ForbiddenError):
            await self.service.delete_post(db_session, str(post.id), owners[1])
        fake_storage.delete_object.assert_not_called()


def test_parse_post_id():
    post_id = uuid.uuid4()
    assert parse_post_id(str(post_id)) == post_id
    with pytest.raises(ValidationError):
        parse_post_id("123")
