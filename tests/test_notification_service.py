"""
Heritage Numérique Backend — Notification Service Unit Tests (Mocked)
======================================================================

What:  NotificationService against a mocked AsyncSession.
How:   `mock_db_session.add` captures the ORM object; `get` returns a
       prepared notification for the read-marking tests.
"""

import uuid

import pytest

from heritage.exceptions import NotFoundError
from heritage.models.enums import NotificationChannel, NotificationType
from heritage.models.notification import Notification
from heritage.services.notification_service import NotificationService


@pytest.fixture
def service():
    return NotificationService()


def _stored(recipient_id, read=False):
    return Notification(
        id=uuid.uuid4(),
        recipient_id=recipient_id,
        type=NotificationType.INVITATION.value,
        title="Invitation to join Diarra",
        message="...",
        channel=NotificationChannel.IN_APP.value,
        read=read,
    )


class TestSend:

    @pytest.mark.asyncio
    async def test_persists_enum_values(self, service, mock_db_session):
        recipient = uuid.uuid4()

        notification = await service.send(
            mock_db_session,
            recipient_id=recipient,
            type=NotificationType.ACCEPTANCE,
            title="Invitation accepted",
            message="Keita Fanta joined Diarra.",
            channel=NotificationChannel.EMAIL,
            metadata={"family": "Diarra"},
        )

        mock_db_session.add.assert_called_once_with(notification)
        mock_db_session.flush.assert_awaited_once()
        assert notification.type == "ACCEPTANCE"
        assert notification.channel == "EMAIL"
        assert notification.read is False
        assert notification.extra == {"family": "Diarra"}

    @pytest.mark.asyncio
    async def test_in_app_is_the_default_channel(self, service, mock_db_session):
        notification = await service.send(
            mock_db_session,
            recipient_id=uuid.uuid4(),
            type=NotificationType.QUIZ_CREATED,
            title="New family quiz",
            message="A new quiz is available.",
        )
        assert notification.channel == NotificationChannel.IN_APP.value

    @pytest.mark.asyncio
    async def test_content_published_links_to_content(self, service, mock_db_session):
        content_id = uuid.uuid4()

        notification = await service.notify_content_published(
            mock_db_session, recipient_id=uuid.uuid4(), content_id=content_id, content_title="Le lièvre"
        )

        assert notification.type == NotificationType.CONTENT_PUBLISHED.value
        assert notification.link.endswith(f"/contents/{content_id}")
        assert "Le lièvre" in notification.message


class TestMarkAsRead:

    @pytest.mark.asyncio
    async def test_marks_own_notification(self, service, mock_db_session):
        owner = uuid.uuid4()
        mock_db_session.get.return_value = _stored(owner)

        notification = await service.mark_as_read(mock_db_session, uuid.uuid4(), owner)

        assert notification.read is True
        assert notification.read_at is not None
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_already_read_is_left_alone(self, service, mock_db_session):
        owner = uuid.uuid4()
        mock_db_session.get.return_value = _stored(owner, read=True)

        await service.mark_as_read(mock_db_session, uuid.uuid4(), owner)

        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_someone_elses_notification_is_not_found(self, service, mock_db_session):
        mock_db_session.get.return_value = _stored(uuid.uuid4())

        with pytest.raises(NotFoundError):
            await service.mark_as_read(mock_db_session, uuid.uuid4(), uuid.uuid4())

    @pytest.mark.asyncio
    async def test_missing_notification(self, service, mock_db_session):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError):
            await service.mark_as_read(mock_db_session, uuid.uuid4(), uuid.uuid4())
