import os

import pytest

from supportlauncher.core.cancellation import CancellationToken
from supportlauncher.core.downloader import download
from supportlauncher.core.exceptions import Cancelled, IoError, NetworkError

PAYLOAD = bytes(range(256)) * 1200   # ~300 KB


def _assert_progress_shape(calls):
    assert calls, "expected at least one progress call"
    assert calls == sorted(calls), f"progress regressed: {calls}"
    assert calls[-1] == 100
    assert calls.count(100) == 1


def test_download_with_content_length(http_server, tmp_path):
    http_server.serve('/updater.exe', PAYLOAD)
    dest = tmp_path / 'updater.exe'
    calls = []

    written = download(http_server.url('/updater.exe'), str(dest),
                       on_progress=calls.append, chunk_size=16384)

    assert written == len(PAYLOAD)
    assert dest.read_bytes() == PAYLOAD
    _assert_progress_shape(calls)
    # one call per chunk plus the terminal 100
    assert len(calls) >= len(PAYLOAD) // 16384


def test_download_without_content_length_reports_only_100(http_server, tmp_path):
    http_server.serve('/updater.exe', PAYLOAD, content_length=False)
    dest = tmp_path / 'updater.exe'
    calls = []

    download(http_server.url('/updater.exe'), str(dest), on_progress=calls.append)

    assert dest.read_bytes() == PAYLOAD
    assert calls == [100]


def test_download_single_small_chunk(http_server, tmp_path):
    http_server.serve('/tiny', b'abc')
    calls = []

    download(http_server.url('/tiny'), str(tmp_path / 'tiny'), on_progress=calls.append)

    _assert_progress_shape(calls)


def test_download_overwrites_previous_file(http_server, tmp_path):
    dest = tmp_path / 'updater.exe'
    dest.write_bytes(b'old contents that are longer than the new ones')
    http_server.serve('/updater.exe', b'new')

    download(http_server.url('/updater.exe'), str(dest))

    assert dest.read_bytes() == b'new'


def test_download_http_error_is_network_error(http_server, tmp_path):
    calls = []
    with pytest.raises(NetworkError) as exc:
        download(http_server.url('/missing.exe'), str(tmp_path / 'x'), on_progress=calls.append)
    assert exc.value.status == 404
    assert calls == []


def test_download_server_error_is_network_error(http_server, tmp_path):
    http_server.serve('/updater.exe', b'boom', status=500)
    with pytest.raises(NetworkError) as exc:
        download(http_server.url('/updater.exe'), str(tmp_path / 'x'))
    assert exc.value.status == 500


def test_download_unreachable_host(dead_url, tmp_path):
    with pytest.raises(NetworkError):
        download(dead_url, str(tmp_path / 'x'), timeout=2)


def test_download_truncated_body(http_server, tmp_path):
    http_server.serve('/updater.exe', b'x' * 100, declared_length=10_000)
    calls = []
    with pytest.raises(NetworkError):
        download(http_server.url('/updater.exe'), str(tmp_path / 'x'), on_progress=calls.append)
    assert 100 not in calls


def test_download_unwritable_destination(http_server, tmp_path):
    http_server.serve('/updater.exe', PAYLOAD)
    dest = tmp_path / 'no-such-dir' / 'updater.exe'
    with pytest.raises(IoError) as exc:
        download(http_server.url('/updater.exe'), str(dest))
    assert not exc.value.permission_denied


def test_cancel_mid_download_stops_at_next_chunk(http_server, tmp_path):
    http_server.serve('/updater.exe', PAYLOAD)
    dest = tmp_path / 'updater.exe'
    cancel = CancellationToken()
    calls = []

    def on_progress(pct):
        calls.append(pct)
        cancel.cancel()

    with pytest.raises(Cancelled):
        download(http_server.url('/updater.exe'), str(dest),
                 on_progress=on_progress, cancel=cancel, chunk_size=8192)

    assert len(calls) == 1
    assert calls[0] < 100
    # partial file is left behind for the caller
    assert dest.exists()
    assert 0 < os.path.getsize(dest) < len(PAYLOAD)


def test_cancel_before_start_makes_no_request(http_server, tmp_path):
    http_server.serve('/updater.exe', PAYLOAD)
    dest = tmp_path / 'updater.exe'
    cancel = CancellationToken()
    cancel.cancel()

    with pytest.raises(Cancelled):
        download(http_server.url('/updater.exe'), str(dest), cancel=cancel)
    assert not dest.exists()
