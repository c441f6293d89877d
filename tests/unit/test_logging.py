import logging

from deckcanvas.core.logging import (
    PayloadRedactionFilter,
    PayloadRedactionProcessor,
    configure_logging,
    get_logger,
    redact_text,
    sanitize_dict,
    sanitize_value,
)

DATA_URL = "data:image/png;base64," + "iVBORw0KGgo" * 10


def test_redact_data_url():
    """Test that inline data URLs are replaced"""
    text = redact_text(f"src={DATA_URL} end")
    assert "iVBORw0KGgo" not in text
    assert "data:image/***REDACTED***" in text
    assert text.endswith(" end")


def test_redact_long_base64_run():
    """Test that long base64 runs are replaced but short words survive"""
    blob = "A" * 250
    assert redact_text(f"x {blob} y") == "x ***REDACTED_BLOB*** y"
    assert redact_text("short words stay") == "short words stay"


def test_sanitize_value_bytes():
    """Test that binary values become a size marker"""
    assert sanitize_value(b"\x89PNG1234") == "<8 bytes>"
    assert sanitize_value(bytearray(3)) == "<3 bytes>"
    assert sanitize_value(42) == 42


def test_sanitize_dict_nested():
    """Test nested containers are sanitized"""
    data = {
        "normal": "value",
        "image": b"1234",
        "nested": {"payload": DATA_URL},
        "items": [b"12", "ok"],
    }
    result = sanitize_dict(data)
    assert result["normal"] == "value"
    assert result["image"] == "<4 bytes>"
    assert "REDACTED" in result["nested"]["payload"]
    assert result["items"] == ["<2 bytes>", "ok"]


def test_processor_redacts_event_dict():
    """Test the structlog processor"""
    processor = PayloadRedactionProcessor()
    result = processor(None, "info", {"event": "asset_saved", "data": b"123"})
    assert result == {"event": "asset_saved", "data": "<3 bytes>"}


def test_filter_redacts_record():
    """Test the stdlib filter on message and args"""
    log_filter = PayloadRedactionFilter()
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=f"uploaded {DATA_URL}",
        args=(),
        exc_info=None,
    )
    assert log_filter.filter(record) is True
    assert "iVBORw0KGgo" not in record.msg

    record.msg = "payload: %s"
    record.args = (DATA_URL, 7)
    log_filter.filter(record)
    assert "REDACTED" in record.args[0]
    assert record.args[1] == 7


def test_configure_logging_sets_level_and_handler():
    """Test root logger setup"""
    configure_logging(level="WARNING")
    root_logger = logging.getLogger()
    assert root_logger.level == logging.WARNING
    assert len(root_logger.handlers) == 1
    assert any(isinstance(f, PayloadRedactionFilter) for f in root_logger.handlers[0].filters)
    assert logging.getLogger("PIL").level == logging.WARNING

    configure_logging(level="DEBUG")
    assert logging.getLogger("PIL").level == logging.INFO


def test_get_logger():
    """Test logger factory returns a usable logger"""
    logger = get_logger("deckcanvas.test")
    assert logger is not None
    assert hasattr(logger, "info")
