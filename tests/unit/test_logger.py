import logging
import unittest

from orangelogic.utils.logger import (
    SensitiveDataFilter,
    log_api_call,
    log_api_request,
    log_api_response,
    mask_sensitive_data,
)


class TestMasking(unittest.TestCase):

    def test_password_hidden_and_login_shortened(self):
        masked = mask_sensitive_data({"login": "user", "password": "hunter2"})
        self.assertEqual(masked, {"login": "u***", "password": "***"})

    def test_token_keeps_last_four_chars(self):
        masked = mask_sensitive_data({"token": "abcdef123456", "query": 'Text:"cat" '})
        self.assertEqual(masked["token"], "***3456")
        self.assertEqual(masked["query"], 'Text:"cat" ')

    def test_session_store_keys(self):
        masked = mask_sensitive_data({"ol_token": "abcdef123456", "ol_token_timeout": 1234.5})
        self.assertEqual(masked, {"ol_token": "***3456", "ol_token_timeout": 1234.5})

    def test_nested_structures(self):
        masked = mask_sensitive_data({"APIResponse": {"Token": "zzzzzz9999"}, "list": [{"password": "x"}]})
        self.assertEqual(masked["APIResponse"]["Token"], "***9999")
        self.assertEqual(masked["list"][0]["password"], "***")

    def test_query_string_values_masked(self):
        text = "https://example.com/API/Login?login=user&password=hunter2&token=abc123&format=json"
        masked = mask_sensitive_data(text)
        self.assertNotIn("hunter2", masked)
        self.assertNotIn("abc123", masked)
        self.assertNotIn("login=user", masked)
        self.assertIn("login=u***", masked)
        self.assertIn("format=json", masked)

    def test_original_is_untouched(self):
        data = {"password": "hunter2"}
        mask_sensitive_data(data)
        self.assertEqual(data["password"], "hunter2")


class TestSensitiveDataFilter(unittest.TestCase):

    def test_filter_rewrites_record(self):
        record = logging.LogRecord(
            "test", logging.INFO, __file__, 1,
            "Calling Login?password=hunter2 with %s", ({"token": "abcdef123456"},), None
        )

        self.assertTrue(SensitiveDataFilter().filter(record))

        message = record.getMessage()
        self.assertNotIn("hunter2", message)
        self.assertNotIn("abcdef123456", message)
        self.assertIn("3456", message)

    def test_request_logging_masks_credentials(self):
        logger = logging.getLogger("orangelogic.tests.request")
        with self.assertLogs(logger, level="DEBUG") as logs:
            log_api_request(logger, "GET", "https://example.com/API/Login",
                            params={"login": "user", "password": "hunter2"})

        self.assertIn("API Request: GET https://example.com/API/Login", logs.output[0])
        self.assertFalse(any("hunter2" in line for line in logs.output))

    def test_response_summary_carries_envelope_code(self):
        logger = logging.getLogger("orangelogic.tests.response")
        with self.assertLogs(logger, level="DEBUG") as logs:
            log_api_response(logger, 200, {"APIResponse": {"Code": "InvalidToken", "Token": "zzzzzz9999"}}, 0.25)

        self.assertIn("API Response: 200 (0.250s) Code=InvalidToken", logs.output[0])
        self.assertFalse(any("zzzzzz9999" in line for line in logs.output))


class _Client:
    def __init__(self, outcome, error=""):
        self.outcome = outcome
        self.error = error

    def get_last_error(self):
        return self.error

    @log_api_call(api_name="OrangeLogic")
    def search(self, text=""):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class TestLogApiCall(unittest.TestCase):

    def test_success(self):
        with self.assertLogs(__name__, level="INFO") as logs:
            self.assertTrue(_Client(True).search(text="cat"))
        self.assertIn("OrangeLogic search succeeded", logs.output[-1])

    def test_failure_reports_last_error(self):
        with self.assertLogs(__name__, level="WARNING") as logs:
            self.assertFalse(_Client(False, "Invalid response.").search(text="cat"))
        self.assertIn("failed", logs.output[-1])
        self.assertIn("Invalid response.", logs.output[-1])

    def test_exception_is_logged_and_reraised(self):
        with self.assertLogs(__name__, level="ERROR") as logs:
            with self.assertRaises(RuntimeError):
                _Client(RuntimeError("boom")).search()
        self.assertIn("raised RuntimeError", logs.output[-1])


if __name__ == '__main__':
    unittest.main()
