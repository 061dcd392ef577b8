from src.error_handler import ErrorHandler
from src.integrations.contracts.interfaces import ErrorRecord
from src.integrations.policy.codec import DESERIALIZE_FAILED, SCHEMA_MISMATCH, DeserializeError, SchemaMismatchError
from src.login.token import TokenDecodeError


def test_codec_errors_become_fixed_messages():
    eh = ErrorHandler()

    assert eh.to_record(DeserializeError("x"), 200) == ErrorRecord(200, 0, DESERIALIZE_FAILED)
    assert eh.to_record(SchemaMismatchError("y: 2 error(s)"), 200) == ErrorRecord(200, 0, SCHEMA_MISMATCH)


def test_token_error_keeps_its_message():
    eh = ErrorHandler()

    record = eh.to_record(TokenDecodeError("Can't find Steam profile ID in token payload"))

    assert record == ErrorRecord(0, 0, "Can't find Steam profile ID in token payload")


def test_unexpected_exception_is_logged_with_traceback(caplog):
    eh = ErrorHandler()

    with caplog.at_level("ERROR"):
        record = eh.to_record(RuntimeError("boom"), context={"operation": "check_order"})

    assert record == ErrorRecord(0, 0, "Unexpected error: boom")
    assert "boom" in caplog.text
    assert caplog.records[-1].exc_info[0] is RuntimeError


def test_callback_exception_is_logged(caplog):
    with caplog.at_level("ERROR"):
        ErrorHandler().handle_callback_exception(ValueError("bad callback"), {"operation": "add_item"})

    assert "Caller callback raised" in caplog.text
    assert "add_item" in caplog.text
