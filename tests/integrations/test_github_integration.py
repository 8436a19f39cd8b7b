"""
GitHub Integration Tests

PyGithub is replaced with a MagicMock; the GraphQL stats query goes through
an httpx.MockTransport.
"""

import asyncio
import json
from unittest.mock import MagicMock

import httpx
from github.GithubException import GithubException, UnknownObjectException

from legacy_ops.integrations.github import GitHubClient

MOCK_REPOSITORY_DATA = {
    "name": "store-site",
    "full_name": "legacywine/store-site",
    "default_branch": "main",
    "html_url": "https://github.com/legacywine/store-site",
}


def _client(transport=None):
    github = MagicMock()
    return GitHubClient(github=github, transport=transport), github


def test_get_repo_prefixes_username():
    client, github = _client()
    github.get_repo.return_value.raw_data = MOCK_REPOSITORY_DATA

    result = asyncio.run(client.get_repo("store-site"))

    assert result == MOCK_REPOSITORY_DATA
    github.get_repo.assert_called_once_with("legacywine/store-site")


def test_get_repo_keeps_full_name():
    client, github = _client()
    asyncio.run(client.get_repo("other-org/tools"))
    github.get_repo.assert_called_once_with("other-org/tools")


def test_list_repos_returns_empty_on_error():
    client, github = _client()
    github.get_user.side_effect = GithubException(401, {"message": "Bad credentials"}, None)

    assert asyncio.run(client.list_repos()) == []


def test_create_or_update_file_creates_missing_file():
    client, github = _client()
    repository = github.get_repo.return_value
    repository.default_branch = "main"
    repository.get_contents.side_effect = UnknownObjectException(404, {"message": "Not Found"}, None)
    repository.create_file.return_value = {"content": MagicMock(sha="blob1"), "commit": MagicMock(sha="c1")}

    result = asyncio.run(client.create_or_update_file("store-site", "menu.md", "# Menu", "Add menu"))

    assert result == {"path": "menu.md", "sha": "blob1", "commit_sha": "c1", "created": True}
    repository.create_file.assert_called_once_with("menu.md", "Add menu", "# Menu", branch="main")
    repository.update_file.assert_not_called()


def test_create_or_update_file_updates_existing_file():
    client, github = _client()
    repository = github.get_repo.return_value
    repository.default_branch = "main"
    repository.get_contents.return_value = MagicMock(sha="old")
    repository.update_file.return_value = {"content": MagicMock(sha="blob2"), "commit": MagicMock(sha="c2")}

    result = asyncio.run(client.create_or_update_file("store-site", "menu.md", "# Menu v2", "Update menu"))

    assert result["created"] is False
    repository.update_file.assert_called_once_with("menu.md", "Update menu", "# Menu v2", "old", branch="main")


def test_test_connection_requires_username():
    client, github = _client()
    github.get_user.return_value.raw_data = {"login": "legacywine"}
    assert asyncio.run(client.test_connection()) is True

    client.username = ""
    assert asyncio.run(client.test_connection()) is False


def test_get_repo_stats_uses_graphql():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        captured["auth"] = request.headers["Authorization"]
        return httpx.Response(
            200, json={"data": {"repository": {"name": "store-site", "stargazerCount": 4, "forkCount": 1}}}
        )

    client, _ = _client(transport=httpx.MockTransport(handler))
    stats = asyncio.run(client.get_repo_stats("store-site"))

    assert stats["stargazerCount"] == 4
    assert captured["body"]["variables"] == {"owner": "legacywine", "repo": "store-site"}
    assert captured["auth"] == "Bearer ghp_test"


def test_get_repo_stats_graphql_errors():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"errors": [{"message": "nope"}]}))
    client, _ = _client(transport=transport)

    assert asyncio.run(client.get_repo_stats("store-site")) is None
