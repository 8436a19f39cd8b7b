"""
GitHub API Client

Responsibilities:
- User and repository operations
- Issues, pull requests and releases
- File create/update on a branch
- Workflow runs, code search, gists
- Repository stats through the GraphQL API
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from github import Auth, Github, InputFileContent
from github.GithubException import GithubException, UnknownObjectException

from legacy_ops.config import get_settings

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"

REPO_STATS_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    name
    stargazerCount
    forkCount
    issues(states: OPEN) { totalCount }
    pullRequests(states: OPEN) { totalCount }
    releases(last: 1) { nodes { tagName createdAt } }
  }
}
"""


class GitHubClient:
    """GitHub API client wrapper."""

    def __init__(self, github: Optional[Github] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        settings = get_settings()
        self.settings = settings
        self.username = settings.github_username
        self._client = github
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.github_token)

    @property
    def client(self) -> Github:
        if self._client is None:
            self._client = Github(auth=Auth.Token(self.settings.github_token))
        return self._client

    def _full_name(self, repo: str) -> str:
        return repo if "/" in repo else f"{self.username}/{repo}"

    async def test_connection(self) -> bool:
        if not self.is_configured or not self.username:
            return False
        return await self.get_user_info() is not None

    # ---- Users & repositories ----------------------------------------------

    async def get_user_info(self, username: Optional[str] = None) -> Optional[Dict[str, Any]]:
        try:
            user = self.client.get_user(username) if username else self.client.get_user()
            return user.raw_data
        except GithubException as e:
            logger.error(f"GitHub API error fetching user: {e}")
            return None

    async def list_repos(self, limit: int = 30, sort: str = "updated") -> List[Dict[str, Any]]:
        try:
            repos = self.client.get_user().get_repos(sort=sort)
            return [repo.raw_data for repo in repos[:limit]]
        except GithubException as e:
            logger.error(f"GitHub API error listing repos: {e}")
            return []

    async def create_repo(
        self, name: str, description: str = "", private: bool = False, auto_init: bool = True
    ) -> Optional[Dict[str, Any]]:
        try:
            repo = self.client.get_user().create_repo(
                name, description=description, private=private, auto_init=auto_init
            )
            logger.info(f"Created repository {repo.full_name}")
            return repo.raw_data
        except GithubException as e:
            logger.error(f"GitHub API error creating repo {name}: {e}")
            return None

    async def get_repo(self, repo: str) -> Optional[Dict[str, Any]]:
        try:
            return self.client.get_repo(self._full_name(repo)).raw_data
        except GithubException as e:
            logger.error(f"GitHub API error fetching repo {repo}: {e}")
            return None

    # ---- Issues & pull requests --------------------------------------------

    async def create_issue(
        self, repo: str, title: str, body: str = "", labels: Optional[List[str]] = None
    ) -> Optional[Dict[str, Any]]:
        try:
            issue = self.client.get_repo(self._full_name(repo)).create_issue(
                title=title, body=body, labels=labels or []
            )
            logger.info(f"Created issue #{issue.number}")
            return issue.raw_data
        except GithubException as e:
            logger.error(f"GitHub API error creating issue: {e}")
            return None

    async def list_issues(self, repo: str, state: str = "open", limit: int = 30) -> List[Dict[str, Any]]:
        try:
            issues = self.client.get_repo(self._full_name(repo)).get_issues(state=state)
            return [issue.raw_data for issue in issues[:limit]]
        except GithubException as e:
            logger.error(f"GitHub API error listing issues: {e}")
            return []

    async def create_pull_request(
        self, repo: str, title: str, head: str, base: str = "main", body: str = ""
    ) -> Optional[Dict[str, Any]]:
        try:
            pr = self.client.get_repo(self._full_name(repo)).create_pull(
                title=title, body=body, head=head, base=base
            )
            logger.info(f"Created PR #{pr.number}: {pr.html_url}")
            return pr.raw_data
        except GithubException as e:
            logger.error(f"GitHub API error creating pull request: {e}")
            return None

    async def list_pull_requests(self, repo: str, state: str = "open", limit: int = 30) -> List[Dict[str, Any]]:
        try:
            pulls = self.client.get_repo(self._full_name(repo)).get_pulls(state=state)
            return [pr.raw_data for pr in pulls[:limit]]
        except GithubException as e:
            logger.error(f"GitHub API error listing pull requests: {e}")
            return []

    # ---- Files ---------------------------------------------------------------

    async def create_or_update_file(
        self, repo: str, path: str, content: str, message: str, branch: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Commit a file, updating it in place when it already exists.

        Returns:
            {"path", "sha", "commit_sha", "created"} or None
        """
        try:
            repository = self.client.get_repo(self._full_name(repo))
            branch = branch or repository.default_branch
            try:
                existing = repository.get_contents(path, ref=branch)
                result = repository.update_file(path, message, content, existing.sha, branch=branch)
                created = False
            except UnknownObjectException:
                result = repository.create_file(path, message, content, branch=branch)
                created = True
            return {
                "path": path,
                "sha": result["content"].sha,
                "commit_sha": result["commit"].sha,
                "created": created,
            }
        except GithubException as e:
            logger.error(f"GitHub API error writing {path}: {e}")
            return None

    async def get_file(self, repo: str, path: str, ref: Optional[str] = None) -> Optional[str]:
        try:
            repository = self.client.get_repo(self._full_name(repo))
            contents = repository.get_contents(path, ref=ref or repository.default_branch)
            return contents.decoded_content.decode("utf-8")
        except GithubException as e:
            logger.error(f"GitHub API error reading {path}: {e}")
            return None

    # ---- Releases, actions, search, gists ------------------------------------

    async def create_release(
        self,
        repo: str,
        tag: str,
        name: str,
        body: str = "",
        draft: bool = False,
        prerelease: bool = False,
    ) -> Optional[Dict[str, Any]]:
        try:
            release = self.client.get_repo(self._full_name(repo)).create_git_release(
                tag=tag, name=name, message=body, draft=draft, prerelease=prerelease
            )
            logger.info(f"Created release {tag}")
            return release.raw_data
        except GithubException as e:
            logger.error(f"GitHub API error creating release: {e}")
            return None

    async def list_workflow_runs(self, repo: str, limit: int = 10) -> List[Dict[str, Any]]:
        try:
            runs = self.client.get_repo(self._full_name(repo)).get_workflow_runs()
            return [run.raw_data for run in runs[:limit]]
        except GithubException as e:
            logger.error(f"GitHub API error listing workflow runs: {e}")
            return []

    async def search_code(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        try:
            results = self.client.search_code(query)
            return [
                {"name": item.name, "path": item.path, "repository": item.repository.full_name, "url": item.html_url}
                for item in results[:limit]
            ]
        except GithubException as e:
            logger.error(f"GitHub API error searching code: {e}")
            return []

    async def create_gist(self, description: str, files: Dict[str, str], public: bool = True) -> Optional[Dict[str, Any]]:
        try:
            gist = self.client.get_user().create_gist(
                public, {name: InputFileContent(content) for name, content in files.items()}, description
            )
            logger.info(f"Created gist {gist.html_url}")
            return gist.raw_data
        except GithubException as e:
            logger.error(f"GitHub API error creating gist: {e}")
            return None

    async def get_repo_stats(self, repo: str) -> Optional[Dict[str, Any]]:
        """Stars, forks, open issue/PR counts and the latest release, in one GraphQL query."""
        owner, name = self._full_name(repo).split("/", 1)
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as http:
                response = await http.post(
                    GRAPHQL_URL,
                    json={"query": REPO_STATS_QUERY, "variables": {"owner": owner, "repo": name}},
                    headers={"Authorization": f"Bearer {self.settings.github_token}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"GitHub GraphQL query failed: {e}")
            return None

        payload = response.json()
        if payload.get("errors"):
            logger.error(f"GitHub GraphQL errors: {payload['errors']}")
            return None
        return payload["data"]["repository"]
