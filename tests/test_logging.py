import logging

from app.core.logging import PrivacyFilter


def test_privacy_filter_redacts_chat_content_and_credentials():
    record = logging.LogRecord("app.services.chat", logging.INFO, __file__, 1, "chat_message_sent", None, None)
    record.content = "meet at gate 3, my number is 010-1234"
    record.password = "secret123"
    record.chat_room_id = "room-1"

    assert PrivacyFilter().filter(record) is True
    assert record.content == "[REDACTED]"
    assert record.password == "[REDACTED]"
    assert record.chat_room_id == "room-1"
