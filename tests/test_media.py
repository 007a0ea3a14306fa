import os

import pytest
import requests

from merge_service.merge_engine.errors import FetchError
from merge_service.merge_engine.media import clip_filename, fetch_clips
from merge_service.merge_engine.workspace import WorkspaceManager


URLS = ["https://a/1.mp4", "https://a/2.mp4", "https://a/3.mp4"]


@pytest.fixture()
def session(tmp_path):
    return WorkspaceManager(str(tmp_path)).open()


def test_clip_filename_is_zero_padded():
    assert clip_filename(0) == "clip_000.mp4"
    assert clip_filename(9) == "clip_009.mp4"


def test_fetch_clips_writes_files_in_order(session, fake_downloads):
    for i, url in enumerate(URLS):
        fake_downloads[url] = f"clip-{i}".encode() * 10

    clips = fetch_clips(session, URLS, chunk_size=7)

    assert [c.index for c in clips] == [0, 1, 2]
    assert [c.source for c in clips] == URLS
    assert all(c.status == "downloaded" for c in clips)
    for i, clip in enumerate(clips):
        assert clip.path == os.path.join(session.clip_dir, clip_filename(i))
        with open(clip.path, "rb") as f:
            assert f.read() == f"clip-{i}".encode() * 10
        assert clip.size_bytes == len(f"clip-{i}".encode() * 10)
    fake_downloads["mock"].assert_called_with(URLS[2], stream=True, timeout=60)


def test_fetch_stops_at_first_http_error(session, fake_downloads):
    fake_downloads[URLS[0]] = b"first"
    fake_downloads[URLS[1]] = (404, b"not found")
    fake_downloads[URLS[2]] = b"third"

    with pytest.raises(FetchError) as exc:
        fetch_clips(session, URLS)

    err = exc.value
    assert err.index == 1
    assert err.source == URLS[1]
    assert isinstance(err.cause, requests.HTTPError)
    assert err.public_message == "Failed to download clip 2"
    requested = [c.args[0] for c in fake_downloads["mock"].call_args_list]
    assert requested == URLS[:2]


def test_fetch_wraps_connection_errors(session, fake_downloads):
    fake_downloads[URLS[0]] = requests.ConnectionError("connection refused")

    with pytest.raises(FetchError) as exc:
        fetch_clips(session, URLS[:2])
    assert exc.value.index == 0
    assert isinstance(exc.value.cause, requests.ConnectionError)


def test_fetch_rejects_empty_body(session, fake_downloads):
    fake_downloads[URLS[0]] = b"ok"
    fake_downloads[URLS[1]] = b""

    with pytest.raises(FetchError) as exc:
        fetch_clips(session, URLS[:2])
    assert exc.value.index == 1
    assert "empty" in str(exc.value)


def test_fetch_enforces_size_limit(session, fake_downloads):
    fake_downloads[URLS[0]] = b"x" * 100

    with pytest.raises(FetchError) as exc:
        fetch_clips(session, URLS[:1], chunk_size=10, max_bytes=50)
    assert "exceeds 50 bytes" in str(exc.value)
