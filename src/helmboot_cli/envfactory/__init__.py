"""Creation of the dev environment git repository."""

from .create_repo import CreateRepository
from .provisioner import RepositoryProvisioner
from .scm import ScmClient, ScmRepository, ScmUser, create_scm_client, find_token

__all__ = [
    "CreateRepository",
    "RepositoryProvisioner",
    "ScmClient",
    "ScmRepository",
    "ScmUser",
    "create_scm_client",
    "find_token",
]
