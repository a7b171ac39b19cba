"""Local git operations backed by GitPython."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote, urlparse, urlunparse

import git

from .errors import GitError

logger = logging.getLogger(__name__)


class GitClient:
    """Git operations needed to discover, clone and push boot repositories."""

    def find_git_config_dir(self, dir: Path | str) -> tuple[Path | None, Path | None]:
        """Find the git metadata directory for a path.

        Args:
            dir: Directory inside a git working tree.

        Returns:
            Tuple of (working tree root, .git directory); both None when dir
            is not inside a git clone.
        """
        try:
            repo = git.Repo(str(dir), search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            return None, None
        root = Path(repo.working_tree_dir) if repo.working_tree_dir else None
        return root, Path(repo.git_dir)

    def discover_upstream_git_url(self, git_conf_dir: Path | str) -> str:
        """Discover the upstream URL from a .git directory.

        Prefers the ``upstream`` remote, then ``origin``, then the first remote.

        Raises:
            GitError: If the repository has no remote with a URL.
        """
        try:
            repo = git.Repo(str(git_conf_dir))
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise GitError(f"{git_conf_dir} is not a git directory") from e

        remotes = {r.name: r for r in repo.remotes}
        for name in ("upstream", "origin"):
            if name in remotes:
                url = next(remotes[name].urls, "")
                if url:
                    return url
        for remote in repo.remotes:
            url = next(remote.urls, "")
            if url:
                return url
        raise GitError(f"no git remote URL could be found in {git_conf_dir}")

    def create_authenticated_url(self, clone_url: str, username: str, token: str) -> str:
        """Embed credentials into an https clone URL."""
        parsed = urlparse(clone_url)
        if parsed.scheme not in ("http", "https"):
            raise GitError(f"cannot add credentials to non-http git URL {clone_url}")
        host = parsed.hostname or ""
        if parsed.port:
            host = f"{host}:{parsed.port}"
        netloc = f"{quote(username, safe='')}:{quote(token, safe='')}@{host}"
        return urlunparse(parsed._replace(netloc=netloc))

    def push(self, dir: Path | str, remote_url: str, force: bool, refspec: str) -> None:
        """Push a local ref to a remote URL.

        Raises:
            GitError: If the push fails.
        """
        try:
            repo = git.Repo(str(dir))
            args = [remote_url, refspec]
            if force:
                args.insert(0, "--force")
            repo.git.push(*args)
        except git.GitCommandError as e:
            # The command line carries the credentials, so only stderr is reported
            raise GitError(f"failed to push {refspec} from {dir}: {(e.stderr or '').strip()}") from e
        except git.GitError as e:
            raise GitError(f"failed to push {refspec} from {dir}: {type(e).__name__}") from e

    def shallow_clone(self, url: str, dir: Path, ref: str = "") -> None:
        """Clone a single ref of a repository with depth 1.

        An empty ref clones the remote's default branch.

        Raises:
            GitError: If the clone fails.
        """
        logger.debug(f"cloning {url} ref {ref or '(default)'} into {dir}")
        kwargs = {"branch": ref} if ref else {}
        try:
            git.Repo.clone_from(url, str(dir), depth=1, single_branch=True, **kwargs)
        except git.GitError as e:
            raise GitError(f"failed to clone {url} ref {ref or '(default)'}: {e}") from e
