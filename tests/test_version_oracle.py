import pytest
from packaging.version import Version

from supportlauncher.core.cancellation import CancellationToken
from supportlauncher.core.exceptions import Cancelled, NetworkError, ParseError
from supportlauncher.core.models import parse_version, try_parse_version
from supportlauncher.core.version_oracle import VersionOracle, fetch_latest_version, is_newer


@pytest.mark.parametrize("text,expected", [
    ("1.4", "1.4"),
    ("1.4.2", "1.4.2"),
    ("  2.0.0\r\n", "2.0.0"),
    ("10.0.3.1", "10.0.3.1"),
])
def test_parse_version_accepts_two_to_four_fields(text, expected):
    assert parse_version(text) == Version(expected)


@pytest.mark.parametrize("text", [
    "not-a-version", "", "   ", "1", "1.2.3.4.5", "1.2a", "v1.2", "1..2", "1.2-beta", None,
])
def test_parse_version_rejects_malformed_text(text):
    with pytest.raises(ParseError):
        parse_version(text)
    assert try_parse_version(text) is None


@pytest.mark.parametrize("older,newer", [
    ("1.9.0", "2.0.0"),
    ("1.4", "1.4.1"),
    ("1.4.2", "1.4.10"),
    ("1.0.0.1", "1.0.0.2"),
    ("0.9", "1.0"),
])
def test_is_newer_is_strict_and_ordered(older, newer):
    a, b = Version(older), Version(newer)
    assert is_newer(b, a)
    assert not is_newer(a, b)
    assert not is_newer(a, a)
    assert not is_newer(b, b)


def test_extra_trailing_field_sorts_after_its_absence():
    assert is_newer(Version("1.4.0"), Version("1.4"))
    assert not is_newer(Version("1.4"), Version("1.4.0"))
    assert is_newer(Version("1.4.0.0"), Version("1.4.0"))
    assert not is_newer(Version("1.3.9.9"), Version("1.4"))


def test_is_newer_with_missing_side_is_false():
    assert not is_newer(None, Version("1.0"))
    assert not is_newer(Version("1.0"), None)
    assert not is_newer(None, None)


def test_fetch_latest_version_trims_body(http_server):
    http_server.serve('/version.txt', "  2.0.0 \n")
    assert fetch_latest_version(http_server.url('/version.txt')) == Version("2.0.0")


def test_fetch_latest_version_tolerates_bom(http_server):
    http_server.serve('/version.txt', b'\xef\xbb\xbf1.5.0\r\n')
    assert fetch_latest_version(http_server.url('/version.txt')) == Version("1.5.0")


def test_fetch_latest_version_malformed(http_server):
    http_server.serve('/version.txt', "not-a-version")
    with pytest.raises(ParseError):
        fetch_latest_version(http_server.url('/version.txt'))


def test_fetch_latest_version_http_error(http_server):
    with pytest.raises(NetworkError) as exc:
        fetch_latest_version(http_server.url('/version.txt'))
    assert exc.value.status == 404


def test_fetch_latest_version_cancelled_before_request(http_server):
    http_server.serve('/version.txt', "2.0.0")
    cancel = CancellationToken()
    cancel.cancel()
    with pytest.raises(Cancelled):
        fetch_latest_version(http_server.url('/version.txt'), cancel)


class TestVersionOracle:

    def test_newer_version_is_returned(self, http_server):
        http_server.serve('/version.txt', "2.0.0")
        oracle = VersionOracle(http_server.url('/version.txt'), "1.9.0")
        assert oracle.check() == Version("2.0.0")

    def test_extra_trailing_field_is_an_update(self, http_server):
        http_server.serve('/version.txt', "1.4.0")
        oracle = VersionOracle(http_server.url('/version.txt'), "1.4")
        assert oracle.check() == Version("1.4.0")

    @pytest.mark.parametrize("published", ["1.9.0", "1.8.5", "1.9"])
    def test_same_or_older_is_up_to_date(self, http_server, published):
        http_server.serve('/version.txt', published)
        oracle = VersionOracle(http_server.url('/version.txt'), "1.9.0")
        assert oracle.check() is None

    def test_malformed_remote_is_up_to_date(self, http_server):
        http_server.serve('/version.txt', "not-a-version")
        oracle = VersionOracle(http_server.url('/version.txt'), "1.9.0")
        assert oracle.check() is None

    def test_server_error_is_up_to_date(self, http_server):
        http_server.serve('/version.txt', "oops", status=503)
        oracle = VersionOracle(http_server.url('/version.txt'), "1.9.0")
        assert oracle.check() is None

    def test_unreachable_is_up_to_date(self, dead_url):
        oracle = VersionOracle(dead_url, "1.9.0", timeout=2)
        assert oracle.check() is None

    def test_unparsable_current_version_skips_check(self, http_server):
        http_server.serve('/version.txt', "99.0")
        oracle = VersionOracle(http_server.url('/version.txt'), "dev-build")
        assert oracle.check() is None

    def test_cancel_propagates(self, http_server):
        http_server.serve('/version.txt', "2.0.0")
        oracle = VersionOracle(http_server.url('/version.txt'), "1.9.0")
        cancel = CancellationToken()
        cancel.cancel()
        with pytest.raises(Cancelled):
            oracle.check(cancel)
