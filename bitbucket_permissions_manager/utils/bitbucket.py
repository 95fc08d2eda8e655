"""Contains utility functions for Bitbucket interactions."""


async def split_repository_in_configuration(repo: str | None, default_workspace: str | None = None) -> tuple[str, str]:
    """Splits a repository reference into workspace and repository slug.

    The reference is either a bare slug, in which case `default_workspace` is
    used, or of the form 'workspace/slug'.
    """
    if repo is None:
        raise ValueError("A repository is required.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) == 1 and parts[0]:
        if not default_workspace:
            raise ValueError(f"Repository '{repo}' has no workspace and no default workspace is configured.")
        return default_workspace, parts[0]
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'slug' or 'workspace/slug' with no leading/trailing slashes or extra parts.")
    workspace, repo_slug = parts
    return workspace, repo_slug
