from datetime import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from videoshare.core.errors import PersistenceError, ValidationError
from videoshare.services.videos import create_video, list_videos


def test_empty_title_is_rejected(datastore):
    with pytest.raises(ValidationError):
        create_video(datastore, "", "", "http://x/video.mp4", "")
    assert list_videos(datastore) == []


def test_whitespace_title_is_rejected(datastore):
    with pytest.raises(ValidationError, match="Title is required"):
        create_video(datastore, "   ", "desc", "http://x/video.mp4")


def test_missing_video_url_is_rejected(datastore):
    with pytest.raises(ValidationError, match="Video URL is required"):
        create_video(datastore, "My Clip", "desc", "", None)


def test_thumbnail_falls_back_to_video_url(datastore):
    video = create_video(datastore, "My Clip", "desc", "http://x/video.mp4", "")
    assert video.id
    assert video.thumbnail_url == "http://x/video.mp4"
    assert video.created_at is not None

    stored = list_videos(datastore)
    assert [v.thumbnail_url for v in stored] == ["http://x/video.mp4"]


def test_distinct_thumbnail_is_kept(datastore):
    video = create_video(datastore, "My Clip", None, "http://x/video.mp4", "http://x/thumb.jpg")
    assert video.thumbnail_url == "http://x/thumb.jpg"
    assert video.description == ""


def test_list_is_newest_first(datastore):
    for name, second in (("A", 1), ("B", 2), ("C", 3)):
        create_video(datastore, name, "", f"http://x/{name}.mp4", created_at=datetime(2025, 1, 1, 0, 0, second))
    assert [v.title for v in list_videos(datastore)] == ["C", "B", "A"]


def test_list_is_empty_when_database_unreachable(broken_datastore):
    assert list_videos(broken_datastore) == []


def test_list_is_empty_when_query_fails():
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))
    store = MagicMock()
    store.session.return_value = session
    assert list_videos(store) == []
    session.close.assert_called_once()


def test_create_surfaces_persistence_error_without_detail(broken_datastore):
    with pytest.raises(PersistenceError) as exc:
        create_video(broken_datastore, "My Clip", "", "http://x/video.mp4")
    assert "sqlite" not in exc.value.public_message.lower()


def test_failed_connection_is_retried(tmp_path):
    from videoshare.database import Datastore

    db_dir = tmp_path / "later"
    store = Datastore(f"sqlite:///{db_dir / 'app.db'}")
    with pytest.raises(PersistenceError):
        store.session()

    db_dir.mkdir()
    store.create_all()
    create_video(store, "Back online", "", "http://x/video.mp4")
    assert [v.title for v in list_videos(store)] == ["Back online"]
    store.dispose()


@pytest.mark.parametrize("url", ["nosuchdialect://host/db", "not a database url"])
def test_unusable_connection_string_fails_soft(url):
    from videoshare.database import Datastore

    store = Datastore(url)
    assert list_videos(store) == []
    with pytest.raises(PersistenceError) as exc:
        create_video(store, "My Clip", "", "http://x/video.mp4")
    assert not exc.value.retryable


def test_unreachable_database_is_retryable(broken_datastore):
    with pytest.raises(PersistenceError) as exc:
        broken_datastore.session()
    assert exc.value.retryable
