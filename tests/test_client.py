from __future__ import annotations

import pytest

from client import DEFAULT_SESSION_NAME, load_credentials
from core.errors import PermanentInitError, TransientInitError, classify_init_failure


def test_load_credentials_reads_environment() -> None:
    credentials = load_credentials({"API_ID": " 12345 ", "API_HASH": "abcdef", "SESSION_NAME": "bot"})

    assert credentials.api_id == 12345
    assert credentials.api_hash == "abcdef"
    assert credentials.session_name == "bot"


def test_load_credentials_defaults_session_name() -> None:
    credentials = load_credentials({"API_ID": "1", "API_HASH": "x", "SESSION_NAME": "  "})

    assert credentials.session_name == DEFAULT_SESSION_NAME


def test_missing_credentials_are_a_permanent_start_failure() -> None:
    with pytest.raises(PermanentInitError, match="API_ID, API_HASH"):
        load_credentials({})

    with pytest.raises(PermanentInitError, match="API_HASH"):
        load_credentials({"API_ID": "1"})


def test_non_numeric_api_id_is_not_retried() -> None:
    with pytest.raises(PermanentInitError) as excinfo:
        load_credentials({"API_ID": "my-app", "API_HASH": "x"})

    failure = classify_init_failure(excinfo.value)
    assert failure is excinfo.value
    assert not isinstance(failure, TransientInitError)
    assert isinstance(failure.cause, ValueError)
