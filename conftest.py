import os
import shutil
import subprocess
import tempfile

import pytest
import requests


class FakeDownload:
    """Stands in for a streamed ``requests.get`` response."""

    def __init__(self, url, body=b"", status_code=200):
        self.url = url
        self.body = body
        self.status_code = status_code

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]


@pytest.fixture()
def temp_workspace_root():
    tmpdir = tempfile.mkdtemp(prefix="merge_ws_")
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture()
def merge_config(temp_workspace_root):
    from merge_service.config import MergeConfig

    return MergeConfig(
        workspace_root=os.path.join(temp_workspace_root, "tmp"),
        archive_dir=os.path.join(temp_workspace_root, "merged_videos"),
        ffmpeg_bin="ffmpeg",
        chunk_size=4,
    )


@pytest.fixture()
def fake_downloads(mocker):
    """
    Patch requests.get. Register bodies per URL in the returned dict; a
    (status, body) tuple sets the HTTP status, an exception is raised.
    """
    routes = {}

    def _get(url, stream=False, timeout=None):
        route = routes.get(url, (404, b""))
        if isinstance(route, BaseException):
            raise route
        if isinstance(route, tuple):
            return FakeDownload(url, route[1], status_code=route[0])
        return FakeDownload(url, route)

    routes["mock"] = mocker.patch("merge_service.merge_engine.media.requests.get", side_effect=_get)
    return routes


@pytest.fixture()
def fake_ffmpeg(mocker):
    """
    Patch subprocess.run so ffmpeg "concatenates" by joining the manifest's
    files into the output path. Set ``.returncode`` / ``.write_output`` on the
    returned object to simulate failures.
    """
    from merge_service.merge_engine.manifest import parse_manifest

    class _FakeFfmpeg:
        returncode = 0
        write_output = True
        calls = []

    def _run(cmd, stdout=None, stderr=None, timeout=None):
        _FakeFfmpeg.calls.append(cmd)
        if _FakeFfmpeg.returncode != 0:
            return subprocess.CompletedProcess(cmd, _FakeFfmpeg.returncode, b"", b"Invalid data found when processing input")
        if _FakeFfmpeg.write_output:
            manifest_path = cmd[cmd.index("-i") + 1]
            with open(manifest_path, encoding="utf-8") as f:
                paths = parse_manifest(f.read())
            with open(cmd[-1], "wb") as out:
                for p in paths:
                    with open(p, "rb") as clip:
                        out.write(clip.read())
        return subprocess.CompletedProcess(cmd, 0, b"", b"")

    _FakeFfmpeg.calls = []
    _FakeFfmpeg.mock = mocker.patch("merge_service.merge_engine.render.subprocess.run", side_effect=_run)
    return _FakeFfmpeg


@pytest.fixture()
def app_client(merge_config):
    # Import after fixtures are in place
    from merge_service import server

    server.app.config.update({
        "TESTING": True,
        "MERGE_CONFIG": merge_config,
    })
    client = server.app.test_client()
    return client
