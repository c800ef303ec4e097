# tests/v1/test_attachments.py
"""Tests for announcement attachment endpoints."""

from unittest.mock import patch

import pytest
from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from bulletin_board.core.security import create_token
from bulletin_board.core.settings import settings
from bulletin_board.models import Attachment

PDF = ("memo.pdf", b"%PDF-1.4 quarterly memo", "application/pdf")


@pytest.fixture(autouse=True)
def attachment_dir(tmp_path):
    with patch.object(settings, "attachment_dir", tmp_path):
        yield tmp_path


@pytest.fixture()
def announcement_id(client, admin_headers) -> int:
    response = client.post(
        "/api/v1/announcements/",
        json={"title": "Policy update", "content": "See the attached memo"},
        headers=admin_headers,
    )
    return response.json()["announcement"]["id"]


def _upload(client, headers, announcement_id, *files):
    return client.post(
        f"/api/v1/announcements/{announcement_id}/attachments",
        files=[("files", item) for item in files],
        headers=headers,
    )


def test_upload_stores_file_and_lists_in_order(
    client, admin_headers, auth_headers, announcement_id, attachment_dir
) -> None:
    response = _upload(
        client, admin_headers, announcement_id, PDF, ("chart.png", b"\x89PNG data", "image/png")
    )

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert [row["original_name"] for row in body] == ["memo.pdf", "chart.png"]
    assert body[0]["file_size"] == len(PDF[1])

    stored = list((attachment_dir / "announcements" / str(announcement_id)).iterdir())
    assert len(stored) == 2
    assert {path.suffix for path in stored} == {".pdf", ".png"}

    listed = client.get(f"/api/v1/announcements/{announcement_id}/attachments", headers=auth_headers)
    assert listed.status_code == status.HTTP_200_OK
    assert [row["original_name"] for row in listed.json()] == ["memo.pdf", "chart.png"]


def test_upload_is_admin_only(client, auth_headers, announcement_id) -> None:
    response = _upload(client, auth_headers, announcement_id, PDF)

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_upload_to_missing_announcement_is_404(client, admin_headers) -> None:
    response = _upload(client, admin_headers, 9999, PDF)

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_rejected_batch_stores_nothing(
    client, db_session, admin_headers, announcement_id, attachment_dir
) -> None:
    response = _upload(
        client, admin_headers, announcement_id, PDF, ("run.exe", b"MZ", "application/x-msdownload")
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "not allowed" in response.json()["detail"]
    assert db_session.execute(select(Attachment)).scalars().all() == []
    assert not (attachment_dir / "announcements").exists()


def test_oversized_file_is_rejected(client, admin_headers, announcement_id) -> None:
    with patch.object(settings, "attachment_max_bytes", 8):
        response = _upload(client, admin_headers, announcement_id, PDF)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "exceeds" in response.json()["detail"]


def test_file_count_limit_includes_existing_attachments(
    client, admin_headers, announcement_id
) -> None:
    with patch.object(settings, "attachment_max_files", 2):
        assert _upload(client, admin_headers, announcement_id, PDF).status_code == 201
        response = _upload(client, admin_headers, announcement_id, PDF, PDF)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "at most 2" in response.json()["detail"]


def test_failed_insert_removes_written_file(
    client, db_session, admin_headers, announcement_id, attachment_dir
) -> None:
    with patch.object(db_session, "commit", side_effect=SQLAlchemyError("disk full")), patch.object(
        db_session, "rollback"
    ):
        response = _upload(client, admin_headers, announcement_id, PDF)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert list((attachment_dir / "announcements" / str(announcement_id)).iterdir()) == []


def test_signed_download_url_serves_file(client, auth_headers, admin_headers, announcement_id) -> None:
    attachment_id = _upload(client, admin_headers, announcement_id, PDF).json()[0]["id"]

    link = client.get(f"/api/v1/attachments/{attachment_id}/download-url", headers=auth_headers)

    assert link.status_code == status.HTTP_200_OK
    body = link.json()
    assert body["expires_in"] == settings.attachment_url_expire_minutes * 60
    assert body["url"].startswith("http://test/api/v1/attachments/download?token=")

    download = client.get(body["url"])
    assert download.status_code == status.HTTP_200_OK
    assert download.content == PDF[1]
    assert download.headers["content-type"] == "application/pdf"
    assert "memo.pdf" in download.headers["content-disposition"]


def test_download_rejects_access_tokens(client, admin_headers, announcement_id, admin) -> None:
    _upload(client, admin_headers, announcement_id, PDF)
    access_token = create_token(admin.employee_id)

    response = client.get("/api/v1/attachments/download", params={"token": access_token})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_delete_attachment_removes_file(
    client, db_session, admin_headers, announcement_id, attachment_dir
) -> None:
    attachment_id = _upload(client, admin_headers, announcement_id, PDF).json()[0]["id"]

    response = client.delete(f"/api/v1/attachments/{attachment_id}", headers=admin_headers)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert db_session.get(Attachment, attachment_id) is None
    assert list((attachment_dir / "announcements" / str(announcement_id)).iterdir()) == []
    missing = client.delete(f"/api/v1/attachments/{attachment_id}", headers=admin_headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_deleting_announcement_removes_its_attachments(
    client, db_session, admin_headers, announcement_id, attachment_dir
) -> None:
    _upload(client, admin_headers, announcement_id, PDF, PDF)

    response = client.delete(f"/api/v1/announcements/{announcement_id}", headers=admin_headers)

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert db_session.execute(select(Attachment)).scalars().all() == []
    assert list((attachment_dir / "announcements" / str(announcement_id)).iterdir()) == []
