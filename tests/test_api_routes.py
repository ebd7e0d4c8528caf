import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch, AsyncMock, MagicMock
from datetime import datetime, timezone
from tortoise.exceptions import DBConnectionError

from app.main import app
from app.models.processed_message import ProcessingStatus


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


def _record(message_id="m1", queue_name="topic.queue.orders", status=ProcessingStatus.PROCESSED):
    record = MagicMock()
    record.message_id = message_id
    record.queue_name = queue_name
    record.processed_at = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    record.status = status
    record.message_type = "order.created"
    return record


class TestPublishRoutes:
    def test_broadcast_reports_delivered_queues(self, client):
        with patch('app.api.v1.fanout.broadcast_message', new_callable=AsyncMock) as mock_broadcast:
            mock_broadcast.return_value = ["q1", "q2", "q3"]

            response = client.post("/api/v1/fanout/broadcast", json={"content": "hi"})

            assert response.status_code == 202
            data = response.json()["data"]
            assert data["delivered_to"] == ["q1", "q2", "q3"]
            sent = mock_broadcast.call_args.args[0]
            assert sent.content == "hi"
            assert sent.id == data["message_id"]

    def test_broadcast_without_body_uses_default_content(self, client):
        with patch('app.api.v1.fanout.broadcast_message', new_callable=AsyncMock) as mock_broadcast:
            mock_broadcast.return_value = []
            response = client.post("/api/v1/fanout/alert")

            assert response.status_code == 202
            assert mock_broadcast.call_args.args[0].type == "system-alert"

    def test_topic_send_with_custom_routing_key(self, client):
        with patch('app.api.v1.topic.send_topic_message', new_callable=AsyncMock) as mock_send:
            mock_send.return_value = ["topic.queue.all"]

            response = client.post("/api/v1/topic/send/order.payment.completed")

            assert response.status_code == 202
            assert response.json()["data"]["routing_key"] == "order.payment.completed"
            assert mock_send.call_args.args[0] == "order.payment.completed"

    def test_publish_failure_returns_500(self, client):
        with patch('app.api.v1.topic.send_topic_message', AsyncMock(side_effect=RuntimeError("broker down"))):
            response = client.post("/api/v1/topic/order/created")

            assert response.status_code == 500
            assert response.json()["success"] is False


class TestDeduplicationRoutes:
    def test_stats(self, client):
        with patch('app.api.v1.deduplication.get_stats', new_callable=AsyncMock) as mock_stats:
            mock_stats.return_value = {"total": 3, "topic.queue.orders": 2, "topic.queue.all": 1}

            response = client.get("/api/v1/deduplication/stats")

            assert response.status_code == 200
            data = response.json()["data"]
            assert data["total"] == 3
            assert data["queues"] == {"topic.queue.orders": 2, "topic.queue.all": 1}

    def test_messages_by_queue(self, client):
        with patch('app.api.v1.deduplication.list_processed', new_callable=AsyncMock) as mock_list:
            mock_list.return_value = [_record()]

            response = client.get("/api/v1/deduplication/messages/topic.queue.orders")

            assert response.status_code == 200
            assert response.json()["data"][0]["status"] == "PROCESSED"
            mock_list.assert_awaited_once_with("topic.queue.orders")

    def test_check_message(self, client):
        with patch('app.api.v1.deduplication.is_duplicate', new_callable=AsyncMock) as mock_dup, \
             patch('app.api.v1.deduplication.get_records', new_callable=AsyncMock) as mock_records:
            mock_dup.return_value = True
            mock_records.return_value = [_record(), _record(queue_name="topic.queue.all")]

            response = client.get("/api/v1/deduplication/check/m1")

            data = response.json()["data"]
            assert data["is_duplicate"] is True
            assert len(data["details"]) == 2
            mock_dup.assert_awaited_once_with("m1", None)

    def test_release_scoped_to_queue(self, client):
        with patch('app.api.v1.deduplication.allow_reprocess', new_callable=AsyncMock) as mock_release:
            mock_release.return_value = 1

            response = client.delete("/api/v1/deduplication/messages/m1", params={"queue_name": "q1"})

            assert response.status_code == 200
            assert response.json()["data"]["released_records"] == 1
            mock_release.assert_awaited_once_with("m1", queue_name="q1")

    def test_release_everywhere(self, client):
        with patch('app.api.v1.deduplication.allow_reprocess', new_callable=AsyncMock) as mock_release:
            mock_release.return_value = 3
            client.delete("/api/v1/deduplication/messages/m1")
            mock_release.assert_awaited_once_with("m1", queue_name=None)

    def test_cleanup_defaults_to_seven_days(self, client):
        with patch('app.api.v1.deduplication.cleanup_older_than', new_callable=AsyncMock) as mock_cleanup:
            mock_cleanup.return_value = 4

            response = client.delete("/api/v1/deduplication/cleanup")

            assert response.json()["data"] == {"deleted_records": 4, "older_than_days": 7}
            mock_cleanup.assert_awaited_once_with(7)

    def test_cleanup_rejects_negative_days(self, client):
        response = client.delete("/api/v1/deduplication/cleanup", params={"days": -1})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"

    def test_ledger_outage_returns_503(self, client):
        with patch('app.api.v1.deduplication.get_stats', AsyncMock(side_effect=DBConnectionError("refused"))):
            response = client.get("/api/v1/deduplication/stats")

            assert response.status_code == 503
            assert response.json()["error"]["code"] == "ledger_unavailable"
