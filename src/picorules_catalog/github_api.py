"""Retrieval of rule-block and template sources from a GitHub repository.

Listings come from the contents API, file bodies from
raw.githubusercontent.com. Bodies are fetched by a bounded thread pool with
capped, exponentially backed-off retries per file.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Self

import requests

from picorules_catalog.common import RULEBLOCK_SUFFIX, TEMPLATE_SUFFIX
from picorules_catalog.errors import FetchError
from picorules_catalog.models import FileItem

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)

API_ROOT: Final = 'https://api.github.com'
RAW_ROOT: Final = 'https://raw.githubusercontent.com'
TIMEOUT_S: Final = 30

DEFAULT_CONCURRENCY: Final = 5
DEFAULT_MAX_RETRIES: Final = 3
BACKOFF_BASE_S: Final = 1.0

type ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True, slots=True)
class RepoConfig:
    owner: str = 'asaabey'
    repo: str = 'tkc-picorules-rules'
    branch: str = 'master'
    ruleblock_path: str = 'picodomain_rule_pack/rule_blocks'
    template_path: str = 'picodomain_template_pack/template_blocks'
    token: str | None = field(default=None, repr=False)

    @classmethod
    def from_env(cls) -> Self:
        """Build a config from `PICORULES_GITHUB_*` environment variables."""
        defaults = cls()
        return cls(
            owner=os.getenv('PICORULES_GITHUB_OWNER', defaults.owner),
            repo=os.getenv('PICORULES_GITHUB_REPO', defaults.repo),
            branch=os.getenv('PICORULES_GITHUB_BRANCH', defaults.branch),
            ruleblock_path=os.getenv(
                'PICORULES_GITHUB_RULEBLOCK_PATH', defaults.ruleblock_path
            ),
            template_path=os.getenv(
                'PICORULES_GITHUB_TEMPLATE_PATH', defaults.template_path
            ),
            token=os.getenv('PICORULES_GITHUB_TOKEN') or None,
        )


def template_file_url(config: RepoConfig, template_name: str, /) -> str:
    """Browser URL of a template file."""
    return (
        f'https://github.com/{config.owner}/{config.repo}/blob/'
        f'{config.branch}/{config.template_path}/{template_name}'
    )


@dataclass(slots=True)
class GitHubClient:
    config: RepoConfig = field(default_factory=RepoConfig.from_env)
    session: requests.Session = field(default_factory=requests.Session)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def _headers(self) -> dict[str, str]:
        headers = {'Accept': 'application/vnd.github.v3+json'}
        if self.config.token:
            headers['Authorization'] = f'token {self.config.token}'
        return headers

    def _get(self, url: str, /, **kwargs: object) -> requests.Response:
        try:
            response = self.session.get(url, timeout=TIMEOUT_S, **kwargs)  # pyright: ignore[reportArgumentType]
        except requests.RequestException as e:
            raise FetchError(f'Request to {url} failed: {e}', url=url) from e

        if not response.ok:
            raise FetchError(
                f'GitHub error for {url}: {response.status_code} {response.reason}',
                url=url,
                status=response.status_code,
            )

        return response

    def list_files(self, path: str, suffix: str, /) -> list[FileItem]:
        """
        List the files in a repository directory that end with `suffix`.

        Raises:
            FetchError: If the listing request fails.
        """
        url = (
            f'{API_ROOT}/repos/{self.config.owner}/{self.config.repo}'
            f'/contents/{path}'
        )
        response = self._get(
            url, headers=self._headers(), params={'ref': self.config.branch}
        )

        try:
            listing = response.json()
        except ValueError as e:
            raise FetchError(f'Invalid listing from {url}: {e}', url=url) from e

        # A file path yields a single object, not a directory listing
        if not isinstance(listing, list) or not all(
            isinstance(item, dict) and isinstance(item.get('name'), str)
            for item in listing
        ):
            raise FetchError(f'{url} is not a directory listing', url=url)

        return [
            FileItem(
                name=item['name'],
                path=item.get('path', item['name']),
                sha=item.get('sha'),
                size=item.get('size'),
                download_url=item.get('download_url'),
                html_url=item.get('html_url'),
            )
            for item in listing
            if item['name'].endswith(suffix)
        ]

    def list_ruleblocks(self) -> list[FileItem]:
        return self.list_files(self.config.ruleblock_path, RULEBLOCK_SUFFIX)

    def list_templates(self) -> list[FileItem]:
        return self.list_files(self.config.template_path, TEMPLATE_SUFFIX)

    def fetch_content(self, file_path: str, /) -> str:
        url = (
            f'{RAW_ROOT}/{self.config.owner}/{self.config.repo}'
            f'/{self.config.branch}/{file_path}'
        )
        return self._get(url).text

    def fetch_content_with_retry(
        self, file_path: str, /, *, max_retries: int = DEFAULT_MAX_RETRIES
    ) -> str:
        """
        Fetch a file, retrying with exponential backoff (1s, 2s, 4s, ...).

        Raises:
            FetchError: The error of the last attempt.
        """
        last_error: FetchError | None = None

        for attempt in range(max_retries):
            try:
                return self.fetch_content(file_path)
            except FetchError as e:
                last_error = e
                if attempt < max_retries - 1:
                    delay = BACKOFF_BASE_S * 2**attempt
                    logger.debug(
                        'Retrying %s in %.0fs (%s)', file_path, delay, e
                    )
                    self.sleep(delay)

        raise last_error or FetchError(f'Failed to fetch {file_path}')

    def fetch_contents(
        self,
        files: Sequence[FileItem],
        /,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        on_progress: ProgressCallback | None = None,
    ) -> dict[str, str]:
        """
        Fetch many files with at most `concurrency` requests in flight.

        Files that still fail after their retries are logged and left out of
        the result.

        Returns:
            Mapping of file name to content.
        """
        results: dict[str, str] = {}
        completed = 0

        with ThreadPoolExecutor(max_workers=max(1, concurrency)) as executor:
            futures = {
                executor.submit(
                    self.fetch_content_with_retry, item.path, max_retries=max_retries
                ): item
                for item in files
            }
            for future in as_completed(futures):
                item = futures[future]
                try:
                    results[item.name] = future.result()
                except FetchError as e:
                    logger.error('Failed to fetch %s: %s', item.name, e)  # noqa: TRY400
                    continue

                completed += 1
                if on_progress is not None:
                    on_progress(completed, len(files))

        return results
