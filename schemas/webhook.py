# GitHub webhook payload schemas (only the consumed fields)
from pydantic import BaseModel, ConfigDict
from typing import Optional

class GitHubModel(BaseModel):
    model_config = ConfigDict(extra='ignore')

class Installation(GitHubModel):
    id: int

class RepositoryOwner(GitHubModel):
    login: str

class Repository(GitHubModel):
    name: str
    full_name: str
    owner: RepositoryOwner

class CommitRef(GitHubModel):
    sha: str

class PullRequestRef(GitHubModel):
    number: int
    head: CommitRef

class PullRequestEvent(GitHubModel):
    action: str
    installation: Optional[Installation] = None
    repository: Repository
    pull_request: PullRequestRef

class PullRequestFile(GitHubModel):
    filename: str
    status: str = 'modified'  # added, modified, removed, renamed, ...
    patch: Optional[str] = None
