"""Tests for per-user tags.

Tests cover:
- Name normalization (trim + lowercase), blank names rejected
- Find-or-create, including a lost creation race
- Attach is idempotent, detach removes only the link
- Owner scoping
"""

from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from booklog.db.models import LogTag, Tag
from booklog.errors import ApiErrorCode, InvalidRequestError, NotFoundError
from booklog.schemas.tags import AttachTagRequest
from booklog.services import tags as tags_service
from tests.factories import (
    create_test_book,
    create_test_log,
    create_test_tag,
    create_test_user,
    link_test_tag,
)
from tests.helpers import auth_headers, create_test_user_id


@pytest.fixture
def reader(db_session: Session, test_user_id: UUID) -> UUID:
    return create_test_user(db_session, test_user_id)


@pytest.fixture
def log_id(db_session: Session, reader: UUID) -> int:
    return create_test_log(db_session, reader, create_test_book(db_session))


class TestNormalizeTagName:
    def test_trims_and_lowercases(self):
        assert tags_service.normalize_tag_name("  Science Fiction ") == "science fiction"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_rejected(self, name: str):
        with pytest.raises(InvalidRequestError) as exc_info:
            tags_service.normalize_tag_name(name)

        assert exc_info.value.code == ApiErrorCode.E_TAG_NAME_INVALID
        assert exc_info.value.message == "Tag name cannot be empty."


class TestAttachTag:
    def test_creates_tag_and_link(self, db_session: Session, reader: UUID, log_id: int):
        result = tags_service.attach_tag(db_session, reader, log_id, AttachTagRequest(name=" Classic "))

        assert result.tag.name == "classic"
        assert [t.name for t in result.tags] == ["classic"]
        assert result.message == 'Tag "classic" added.'

    def test_reuses_existing_tag(self, db_session: Session, reader: UUID, log_id: int):
        tag_id = create_test_tag(db_session, reader, "classic")

        result = tags_service.attach_tag(db_session, reader, log_id, AttachTagRequest(name="CLASSIC"))

        assert result.tag.id == tag_id
        assert db_session.scalar(select(func.count()).select_from(Tag)) == 1

    def test_attach_twice_is_idempotent(self, db_session: Session, reader: UUID, log_id: int):
        tags_service.attach_tag(db_session, reader, log_id, AttachTagRequest(name="classic"))

        result = tags_service.attach_tag(db_session, reader, log_id, AttachTagRequest(name="Classic"))

        assert [t.name for t in result.tags] == ["classic"]
        assert db_session.scalar(select(func.count()).select_from(LogTag)) == 1

    def test_same_name_is_separate_per_user(self, db_session: Session, reader: UUID, log_id: int):
        other = create_test_user(db_session, create_test_user_id())
        other_log = create_test_log(db_session, other, create_test_book(db_session, "B"))

        mine = tags_service.attach_tag(db_session, reader, log_id, AttachTagRequest(name="fav"))
        theirs = tags_service.attach_tag(db_session, other, other_log, AttachTagRequest(name="fav"))

        assert mine.tag.id != theirs.tag.id

    def test_lost_creation_race_reuses_winner(
        self, db_session: Session, reader: UUID, log_id: int, monkeypatch
    ):
        winner = create_test_tag(db_session, reader, "classic")
        real_find = tags_service._find_tag
        calls = []

        def find_misses_once(db, viewer_id, name):
            calls.append(name)
            if len(calls) == 1:
                return None
            return real_find(db, viewer_id, name)

        monkeypatch.setattr(tags_service, "_find_tag", find_misses_once)

        result = tags_service.attach_tag(db_session, reader, log_id, AttachTagRequest(name="classic"))

        assert result.tag.id == winner
        assert db_session.scalar(select(func.count()).select_from(Tag)) == 1

    def test_other_users_log_not_found(self, db_session: Session, log_id: int):
        stranger = create_test_user(db_session, create_test_user_id())

        with pytest.raises(NotFoundError) as exc_info:
            tags_service.attach_tag(db_session, stranger, log_id, AttachTagRequest(name="x"))

        assert exc_info.value.code == ApiErrorCode.E_LOG_NOT_FOUND
        assert db_session.scalar(select(func.count()).select_from(Tag)) == 0


class TestDetachTag:
    def test_removes_link_keeps_tag(self, db_session: Session, reader: UUID, log_id: int):
        tag_id = create_test_tag(db_session, reader, "classic")
        link_test_tag(db_session, reader, log_id, tag_id)

        tags_service.detach_tag(db_session, reader, log_id, tag_id)

        assert tags_service.list_log_tags(db_session, reader, log_id) == []
        assert [t.id for t in tags_service.list_user_tags(db_session, reader)] == [tag_id]

    def test_detach_unattached_is_noop(self, db_session: Session, reader: UUID, log_id: int):
        tag_id = create_test_tag(db_session, reader, "classic")

        tags_service.detach_tag(db_session, reader, log_id, tag_id)

    def test_detach_on_other_users_log_not_found(
        self, db_session: Session, reader: UUID, log_id: int
    ):
        tag_id = create_test_tag(db_session, reader, "classic")
        link_test_tag(db_session, reader, log_id, tag_id)
        stranger = create_test_user(db_session, create_test_user_id())

        with pytest.raises(NotFoundError):
            tags_service.detach_tag(db_session, stranger, log_id, tag_id)

        assert db_session.scalar(select(func.count()).select_from(LogTag)) == 1


class TestListTags:
    def test_user_tags_alphabetical_and_scoped(self, db_session: Session, reader: UUID):
        other = create_test_user(db_session, create_test_user_id())
        create_test_tag(db_session, reader, "zeal")
        create_test_tag(db_session, reader, "apt")
        create_test_tag(db_session, other, "hidden")

        assert [t.name for t in tags_service.list_user_tags(db_session, reader)] == ["apt", "zeal"]


class TestTagRoutes:
    def test_attach_list_detach(
        self, auth_client: TestClient, db_session: Session, test_user_id: UUID
    ):
        headers = auth_headers(test_user_id)
        book_id = create_test_book(db_session)
        log = auth_client.put("/logs", json={"book_id": book_id}, headers=headers).json()["data"][
            "log"
        ]

        attached = auth_client.post(
            f"/logs/{log['id']}/tags", json={"name": "Re-read"}, headers=headers
        )
        tag_id = attached.json()["data"]["tag"]["id"]
        listed = auth_client.get(f"/logs/{log['id']}/tags", headers=headers)
        detached = auth_client.delete(f"/logs/{log['id']}/tags/{tag_id}", headers=headers)
        after = auth_client.get(f"/logs/{log['id']}/tags", headers=headers)
        options = auth_client.get("/tags", headers=headers)

        assert attached.status_code == 200
        assert attached.json()["data"]["message"] == 'Tag "re-read" added.'
        assert [t["name"] for t in listed.json()["data"]] == ["re-read"]
        assert detached.status_code == 204
        assert after.json()["data"] == []
        assert [t["name"] for t in options.json()["data"]] == ["re-read"]

    def test_blank_tag_name_rejected(
        self, auth_client: TestClient, db_session: Session, test_user_id: UUID
    ):
        headers = auth_headers(test_user_id)
        book_id = create_test_book(db_session)
        log = auth_client.put("/logs", json={"book_id": book_id}, headers=headers).json()["data"][
            "log"
        ]

        response = auth_client.post(f"/logs/{log['id']}/tags", json={"name": "  "}, headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_TAG_NAME_INVALID"
