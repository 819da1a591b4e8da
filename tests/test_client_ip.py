from conftest import make_request

from leadcapture.security.client_ip import resolve_client_ip


def test_first_forwarded_hop_wins():
    request = make_request({"X-Forwarded-For": " 198.51.100.4 , 10.0.0.1, 10.0.0.2"})
    assert resolve_client_ip(request) == "198.51.100.4"


def test_falls_back_to_peer_address():
    assert resolve_client_ip(make_request()) == "203.0.113.7"


def test_empty_forwarded_header_falls_back_to_peer():
    assert resolve_client_ip(make_request({"X-Forwarded-For": " , 10.0.0.1"})) == "203.0.113.7"


def test_unknown_without_any_address():
    assert resolve_client_ip(make_request(client=None)) == "unknown"
