"""Tests for runtime helper functions."""

import logging
import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from silverware.context import Context
from silverware.exceptions import ProviderInterruptedException
from silverware.utils import join_threads, log_shutdown, parse_boolean, wait_for_http


def make_response(status_code: int) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.__enter__.return_value = response
    return response


class TestParseBoolean:
    """Tests for configuration flag parsing."""

    @pytest.mark.parametrize("value", ["true", "True", "TRUE", True])
    def test_true_values(self, value):
        assert parse_boolean(value) is True

    @pytest.mark.parametrize("value", ["false", "yes", "1", "", " true", None, 1, False])
    def test_false_values(self, value):
        assert parse_boolean(value) is False


class TestWaitForHttp:
    """Tests for the bounded HTTP probe."""

    def test_succeeds_on_first_attempt(self):
        with patch("silverware.utils.requests.get", return_value=make_response(200)) as get, \
                patch("silverware.utils.time.sleep") as sleep:
            assert wait_for_http("http://localhost:1/x", 200) is True

        get.assert_called_once_with("http://localhost:1/x", stream=True, timeout=2.0)
        sleep.assert_not_called()

    def test_retries_until_expected_status(self):
        responses = [make_response(503), make_response(404), make_response(200)]

        with patch("silverware.utils.requests.get", side_effect=responses) as get, \
                patch("silverware.utils.time.sleep") as sleep:
            assert wait_for_http("http://localhost:1/x", 200, attempts=5, interval=0.5) is True

        assert get.call_count == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(0.5)

    def test_gives_up_after_attempts(self):
        error = requests.ConnectionError("refused")

        with patch("silverware.utils.requests.get", side_effect=error) as get, \
                patch("silverware.utils.time.sleep") as sleep:
            assert wait_for_http("http://localhost:1/x", 200, attempts=3) is False

        assert get.call_count == 3
        assert sleep.call_count == 2

    def test_wrong_status_never_succeeds(self):
        with patch("silverware.utils.requests.get", return_value=make_response(500)), \
                patch("silverware.utils.time.sleep"):
            assert wait_for_http("http://localhost:1/x", 200, attempts=2) is False

    def test_uses_given_sleep_between_attempts(self):
        sleep = MagicMock()

        with patch("silverware.utils.requests.get", side_effect=requests.ConnectionError("refused")), \
                patch("silverware.utils.time.sleep") as time_sleep:
            assert wait_for_http("http://localhost:1/x", 200, attempts=3, interval=0.25, sleep=sleep) is False

        assert sleep.call_count == 2
        sleep.assert_called_with(0.25)
        time_sleep.assert_not_called()

    def test_interrupted_sleep_ends_waiting(self):
        # Given a context interrupted while the first attempt fails
        context = Context()
        context.interrupt()

        # When waiting with the context's sleep
        with patch("silverware.utils.requests.get", side_effect=requests.ConnectionError("refused")) as get:
            with pytest.raises(ProviderInterruptedException):
                wait_for_http("http://localhost:1/x", 200, sleep=context.sleep)

        # Then no further attempts are made
        get.assert_called_once()


def test_log_shutdown(caplog):
    log = logging.getLogger("tests.shutdown")

    with caplog.at_level(logging.DEBUG, logger="tests.shutdown"):
        log_shutdown(log, RuntimeError("stop"))

    messages = [record.getMessage() for record in caplog.records]
    assert "Provider thread shutting down" in messages
    assert any("stop" in message for message in messages)


class TestJoinThreads:
    """Tests for joining threads against one deadline."""

    def test_returns_names_still_alive(self):
        release = threading.Event()
        finished = threading.Thread(target=lambda: None, name="finished")
        stuck = threading.Thread(target=release.wait, name="stuck", daemon=True)
        finished.start()
        stuck.start()

        try:
            assert join_threads([finished, stuck], timeout=0.1) == ["stuck"]
        finally:
            release.set()
            stuck.join(timeout=2)

    def test_all_joined(self):
        thread = threading.Thread(target=lambda: None)
        thread.start()

        assert join_threads([thread], timeout=1) == []
