import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import requests

from orangelogic import cli


LOGIN_OK = {
    "APIRequestInfo": {"TimeoutPeriodMinutes": 20},
    "APIResponse": {"Token": "tok-cli"},
}


def _json_response(body, status_code=200):
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    response._content = json.dumps(body).encode("utf-8")
    return response


def _page(number, has_next):
    return {
        "APIResponse": {
            "GlobalInfo": {"TotalCount": 2, "Sort": "Newest", "NextPage": has_next},
            "Items": [{"SystemIdentifier": f"P{number}"}],
        }
    }


@patch('orangelogic.cli.setup_logging')
@patch('orangelogic.core.orangelogic_api.requests.Session.request')
class TestSearchCommand(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.config_path = Path(self.tmp.name) / "config.json"
        self.session_path = Path(self.tmp.name) / "session.json"
        self.config_path.write_text(json.dumps({
            "domain": "example.com",
            "login": "user",
            "password": "secret",
        }), encoding="utf-8")

        environ = {k: v for k, v in os.environ.items() if not k.startswith("ORANGELOGIC_")}
        env_patcher = patch.dict('os.environ', environ, clear=True)
        env_patcher.start()
        self.addCleanup(env_patcher.stop)

    def run_cli(self, *args):
        argv = ["--config", str(self.config_path), "--session-file", str(self.session_path), *args]
        with patch('sys.stdout', new_callable=io.StringIO) as out:
            code = cli.main(argv)
        return code, out.getvalue()

    def test_single_page_search(self, mock_request, _setup_logging):
        mock_request.side_effect = [_json_response(LOGIN_OK), _json_response(_page(1, True))]

        code, out = self.run_cli("--text", "cat", "--media-type", "image", "--count", "5")

        self.assertEqual(code, 0)
        result = json.loads(out)
        self.assertEqual(result["TotalCount"], 2)
        self.assertEqual(result["Items"], [{"SystemIdentifier": "P1"}])
        data = mock_request.call_args.kwargs["data"]
        self.assertEqual(data["query"], 'Text:"cat" MediaType:"Image" ')
        self.assertEqual(data["countperpage"], 5)

    def test_token_cached_between_runs(self, mock_request, _setup_logging):
        mock_request.side_effect = [
            _json_response(LOGIN_OK),
            _json_response(_page(1, False)),
            _json_response(_page(1, False)),
        ]

        self.run_cli("--text", "cat")
        code, _ = self.run_cli("--text", "dog")

        self.assertEqual(code, 0)
        self.assertEqual(mock_request.call_count, 3)
        stored = json.loads(self.session_path.read_text(encoding="utf-8"))
        self.assertEqual(stored["ol_token"], "tok-cli")

    def test_all_pages(self, mock_request, _setup_logging):
        mock_request.side_effect = [
            _json_response(LOGIN_OK),
            _json_response(_page(1, True)),
            _json_response(_page(2, False)),
        ]

        code, out = self.run_cli("--all-pages")

        self.assertEqual(code, 0)
        self.assertEqual(
            json.loads(out)["Items"],
            [{"SystemIdentifier": "P1"}, {"SystemIdentifier": "P2"}]
        )

    def test_failed_login(self, mock_request, _setup_logging):
        mock_request.side_effect = [_json_response({"APIResponse": {"Code": "Failure"}})]

        code, out = self.run_cli("--text", "cat")

        self.assertEqual(code, 2)
        self.assertEqual(out, "")

    def test_failed_search(self, mock_request, _setup_logging):
        mock_request.side_effect = [
            _json_response(LOGIN_OK),
            _json_response({"APIResponse": {"Code": "Failure"}}),
        ]

        code, _ = self.run_cli("--text", "cat")

        self.assertEqual(code, 2)

    def test_missing_credentials(self, mock_request, _setup_logging):
        self.config_path.write_text(json.dumps({"domain": "example.com"}), encoding="utf-8")

        code, _ = self.run_cli()

        self.assertEqual(code, 1)
        mock_request.assert_not_called()

    def test_invalid_domain(self, mock_request, _setup_logging):
        self.config_path.write_text(json.dumps({
            "domain": "bad domain", "login": "user", "password": "secret"
        }), encoding="utf-8")

        code, _ = self.run_cli()

        self.assertEqual(code, 1)
        mock_request.assert_not_called()


if __name__ == '__main__':
    unittest.main()
