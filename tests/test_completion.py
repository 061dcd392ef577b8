import pytest

from src.integrations.contracts.interfaces import ErrorRecord
from src.integrations.policy.completion import Completion


@pytest.mark.asyncio
async def test_settles_exactly_once(caplog):
    successes, errors = [], []
    completion = Completion(successes.append, errors.append, name="probe")

    completion.succeed(1)
    with caplog.at_level("WARNING"):
        completion.fail(ErrorRecord(500, 0, "late"))
        completion.succeed(2)

    result = await completion.future
    assert result.ok and result.value == 1
    assert successes == [1]
    assert errors == []
    assert "settled twice" in caplog.text


@pytest.mark.asyncio
async def test_failure_result_and_callback():
    errors = []
    completion = Completion(on_error=errors.append)
    error = ErrorRecord(204, 0, "No response")

    completion.fail(error)

    result = await completion.future
    assert not result.ok
    assert result.error == error
    assert errors == [error]


@pytest.mark.asyncio
async def test_callback_exception_does_not_escape():
    def boom(value):
        raise RuntimeError("callback bug")

    completion = Completion(on_success=boom, name="probe")
    completion.succeed("ok")

    assert (await completion.future).value == "ok"


@pytest.mark.asyncio
async def test_derive_reuses_callbacks_with_new_future():
    successes = []
    original = Completion(on_success=successes.append, name="add_item")
    original.fail(ErrorRecord(500, 0, "x"))

    follow_up = original.derive("refresh")
    follow_up.succeed("cart")

    assert follow_up.future is not original.future
    assert follow_up.name == "refresh"
    assert (await follow_up.future).value == "cart"
    assert successes == ["cart"]
