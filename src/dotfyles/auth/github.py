"""GitHub REST lookups needed to pick the push target."""

import logging

from ..errors import NetworkError, ProviderError

logger = logging.getLogger(__name__)

REPO_DESCRIPTION = "Dotfiles collected by dotfyles"


def _headers(token) -> dict:
    return {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token.value}",
    }


def get_login(transport, token, api_url: str = "https://api.github.com") -> str:
    """Return the login of the user owning the token."""
    resp = transport.get(f"{api_url.rstrip('/')}/user", headers=_headers(token))
    if resp.status == 401:
        raise ProviderError("GitHub rejected the access token", status=401)
    if resp.status != 200:
        raise NetworkError(
            f"GitHub user lookup failed: {resp.status} - {resp.body}",
            status=resp.status,
            body=resp.body,
        )
    try:
        login = resp.json().get("login")
    except (ValueError, AttributeError) as e:
        raise ProviderError(f"Could not parse GitHub user response: {e}") from e
    if not login:
        raise ProviderError("GitHub user response has no login")
    return login


def ensure_repository(
    transport,
    token,
    login: str,
    repo_name: str,
    api_url: str = "https://api.github.com",
    private: bool = True,
) -> bool:
    """Create ``login/repo_name`` on GitHub unless it already exists.

    Returns True if the repository was created by this call.
    """
    api_url = api_url.rstrip("/")
    resp = transport.get(
        f"{api_url}/repos/{login}/{repo_name}", headers=_headers(token)
    )
    if resp.status == 200:
        logger.info(f"Repository {login}/{repo_name} already exists")
        return False
    if resp.status == 401:
        raise ProviderError("GitHub rejected the access token", status=401)
    if resp.status != 404:
        raise NetworkError(
            f"GitHub repository lookup failed: {resp.status} - {resp.body}",
            status=resp.status,
            body=resp.body,
        )

    logger.info(f"Repository {login}/{repo_name} not found, creating it")
    resp = transport.post(
        f"{api_url}/user/repos",
        headers=_headers(token),
        json_data={
            "name": repo_name,
            "private": private,
            "description": REPO_DESCRIPTION,
        },
    )
    if resp.status == 201:
        logger.info(f"Created repository {login}/{repo_name}")
        return True
    if resp.status == 422:
        # Created concurrently, or the name is taken under this account.
        logger.info(f"Repository {login}/{repo_name} already exists")
        return False
    if resp.status in (401, 403, 404):
        raise ProviderError(
            f"Not allowed to create repository {login}/{repo_name}: "
            f"{resp.status} - {resp.body}. Create it on GitHub or set "
            f"remote.url to an existing repository.",
            status=resp.status,
            body=resp.body,
        )
    raise NetworkError(
        f"GitHub repository creation failed: {resp.status} - {resp.body}",
        status=resp.status,
        body=resp.body,
    )


def repo_url_for(login: str, repo_name: str, host: str = "https://github.com") -> str:
    return f"{host.rstrip('/')}/{login}/{repo_name}.git"


def resolve_remote_url(
    transport,
    token,
    repo_name: str,
    host: str = "https://github.com",
    api_url: str = "https://api.github.com",
    create: bool = True,
    private: bool = True,
) -> str:
    """Derive the remote URL from the token owner's login.

    With ``create`` the repository is created on GitHub when missing.
    """
    login = get_login(transport, token, api_url)
    if create:
        ensure_repository(
            transport, token, login, repo_name, api_url=api_url, private=private
        )
    url = repo_url_for(login, repo_name, host)
    logger.info(f"Using remote {url}")
    return url
