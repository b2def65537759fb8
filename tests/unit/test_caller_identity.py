# pylint: disable=missing-module-docstring,missing-function-docstring

from ratelimit.identity import caller_identity
from spec import UNKNOWN_CALLER_IDENTITY


def test_forwarded_for_wins_when_trusted():
    headers = {"x-forwarded-for": "192.168.1.1"}

    assert caller_identity(headers, "10.0.0.1") == "192.168.1.1"


def test_first_forwarded_hop_is_the_client():
    headers = {"X-Forwarded-For": "203.0.113.7, 10.1.1.1, 10.2.2.2"}

    assert caller_identity(headers, "10.0.0.1") == "203.0.113.7"


def test_forwarded_for_ignored_when_untrusted():
    headers = {"x-forwarded-for": "192.168.1.1"}

    assert caller_identity(headers, "10.0.0.1", trust_forwarded_for=False) == "10.0.0.1"


def test_blank_forwarded_for_falls_back_to_socket():
    assert caller_identity({"x-forwarded-for": " , "}, "10.0.0.1") == "10.0.0.1"


def test_no_address_at_all():
    assert caller_identity({}, None) == UNKNOWN_CALLER_IDENTITY
