"""
Tests for ghfetch.services.release_probe
"""
import pytest

from ghfetch.exceptions import ProtocolError, TransferError
from ghfetch.models import ArchiveKind
from ghfetch.services import GitHubClient, ReleaseProbe
from ghfetch.services.release_probe import describe_asset, select_release


class TestSelectRelease:
    def test_trims_tag_name(self):
        releases = [{"tag_name": "v1.0 ", "assets": []}]
        assert select_release(releases, "v1.0") is releases[0]

    def test_first_match_wins(self):
        releases = [
            {"tag_name": "v1.0", "id": 1},
            {"tag_name": " v1.0", "id": 2},
        ]
        assert select_release(releases, "v1.0")["id"] == 1

    def test_exact_match_only(self):
        assert select_release([{"tag_name": "v1.0.1"}], "v1.0") is None


class TestDescribeAsset:
    def test_tar(self):
        release = {"assets": [{"name": "v2.3.0.tar.gz", "url": "https://x/1"}]}
        descriptor = describe_asset(release)
        assert descriptor.kind is ArchiveKind.TAR
        assert descriptor.url == "https://x/1"

    def test_zip(self):
        release = {"assets": [{"name": "v2.3.0.zip", "url": "https://x/1"}]}
        assert describe_asset(release).kind is ArchiveKind.ZIP

    def test_unsupported_suffix(self):
        release = {"assets": [{"name": "v2.3.0.dmg", "url": "https://x/1"}]}
        assert describe_asset(release) is None

    def test_only_first_asset_is_inspected(self):
        release = {
            "assets": [
                {"name": "notes.txt", "url": "https://x/1"},
                {"name": "v2.3.0.tar.gz", "url": "https://x/2"},
            ]
        }
        assert describe_asset(release) is None

    def test_no_assets(self):
        assert describe_asset({"assets": []}) is None


@pytest.mark.asyncio
async def test_check_releases_matches_tag(github, make_config):
    github.add_release("v1.1.0", [("v1.1.0.zip", b"zip")])
    github.add_release(" v1.2.0 ", [("v1.2.0.tar.gz", b"tar")])

    async with GitHubClient(make_config(github)) as client:
        descriptor = await ReleaseProbe(client).check_releases("owner/repo", "v1.2.0")

    assert descriptor.kind is ArchiveKind.TAR
    assert descriptor.name == "v1.2.0.tar.gz"
    assert descriptor.url == github.asset_url("2")


@pytest.mark.asyncio
async def test_check_releases_without_match(github, make_config):
    github.add_release("v1.1.0", [("v1.1.0.tar.gz", b"tar")])

    async with GitHubClient(make_config(github)) as client:
        assert await ReleaseProbe(client).check_releases("owner/repo", "v9") is None


@pytest.mark.asyncio
async def test_check_releases_malformed_response(github, make_config):
    github.releases = "<html>rate limited</html>"

    async with GitHubClient(make_config(github)) as client:
        with pytest.raises(ProtocolError) as excinfo:
            await ReleaseProbe(client).check_releases("owner/repo", "v1.0")

    assert excinfo.value.context["repo"] == "owner/repo"


@pytest.mark.asyncio
async def test_check_releases_non_list_response(github, make_config):
    github.releases = '{"message": "Bad credentials"}'

    async with GitHubClient(make_config(github)) as client:
        with pytest.raises(ProtocolError):
            await ReleaseProbe(client).check_releases("owner/repo", "v1.0")


@pytest.mark.asyncio
async def test_check_releases_missing_endpoint(github, make_config):
    github.releases_status = 404

    async with GitHubClient(make_config(github)) as client:
        assert await ReleaseProbe(client).check_releases("owner/repo", "v1.0") is None


@pytest.mark.asyncio
async def test_check_releases_server_error(github, make_config):
    github.releases_status = 502

    async with GitHubClient(make_config(github)) as client:
        with pytest.raises(TransferError):
            await ReleaseProbe(client).check_releases("owner/repo", "v1.0")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "releases",
    [
        [1, 2],
        [{"tag_name": 5}],
        [{"tag_name": "v1.0", "assets": [7]}],
        [{"tag_name": "v1.0", "assets": {"a": 1}}],
        [{"tag_name": "v1.0", "assets": [{"name": 3, "url": "https://x/1"}]}],
    ],
)
async def test_check_releases_badly_shaped_entries(github, make_config, releases):
    github.releases = releases

    async with GitHubClient(make_config(github)) as client:
        with pytest.raises(ProtocolError) as excinfo:
            await ReleaseProbe(client).check_releases("owner/repo", "v1.0")

    assert excinfo.value.context == {"repo": "owner/repo", "version": "v1.0"}
