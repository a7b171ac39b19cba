"""Request to create the dev environment git repository."""

from __future__ import annotations

from dataclasses import dataclass

import questionary

from ..boot.errors import RepositoryCreationError, ScmError
from .scm import GITHUB_SERVER, ScmClient, ScmRepository


@dataclass
class CreateRepository:
    """Values needed to create the dev environment repository."""

    git_server: str = ""
    git_kind: str = ""
    owner: str = ""
    repository: str = ""
    current_username: str = ""

    def confirm_values(self, batch_mode: bool) -> None:
        """Prompt for (or, in batch mode, validate) the repository values.

        Raises:
            RepositoryCreationError: If a value is missing in batch mode.
            KeyboardInterrupt: If the user cancels a prompt.
        """
        if not self.git_server:
            self.git_server = GITHUB_SERVER
        if not self.git_kind:
            self.git_kind = "github"

        if batch_mode:
            missing = [
                name
                for name, value in (("owner", self.owner), ("repository", self.repository))
                if not value
            ]
            if missing:
                raise RepositoryCreationError(
                    f"missing {' and '.join(missing)} for the dev environment repository. "
                    "specify them in the requirements file or via --repo"
                )
            return

        self.git_server = self._ask("Git server URL:", self.git_server)
        self.owner = self._ask("Git owner (user or organisation):", self.owner)
        self.repository = self._ask("Repository name:", self.repository)

    def _ask(self, message: str, default: str) -> str:
        answer = questionary.text(
            message,
            default=default,
            validate=lambda value: bool(value.strip()) or "A value is required",
        ).ask()
        if answer is None:
            # User cancelled (Ctrl+C)
            raise KeyboardInterrupt("Repository creation cancelled by user")
        return answer.strip()

    def create_repository(self, scm: ScmClient) -> ScmRepository:
        """Create the repository on the SCM.

        Raises:
            RepositoryCreationError: If the SCM refuses or fails the request.
        """
        try:
            return scm.create_repository(self.owner, self.repository, self.current_username)
        except ScmError as e:
            raise RepositoryCreationError(
                f"failed to create repository {self.owner}/{self.repository} on "
                f"{self.git_server}: {e.message}"
            ) from e
