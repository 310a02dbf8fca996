"""Process configuration for the bisection bot.

All components receive their settings from ``BotConfig`` at construction
time; nothing reads the environment after startup.

Usage
-----
>>> import os
>>> os.environ["BISECTBOT_GITHUB_USERNAME"] = "bisect-bot"
>>> os.environ["BISECTBOT_GITHUB_TOKEN"] = "ghp_example"
>>> config = BotConfig.from_env()
>>> config.command_prefix
'bisect-bot'

"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

from bisectbot.commands import DEFAULT_PREFIX

_DEFAULT_GITHUB_API_URL = "https://api.github.com"
_DEFAULT_BOT_REPOSITORY = "bjorn3/cargo-bisect-rustc-bot"
_DEFAULT_JOBS_REPOSITORY = "bjorn3/cargo-bisect-rustc-bot-jobs"
_DEFAULT_POLL_INTERVAL_S = 1.0

_ZULIP_VARS = (
    "BISECTBOT_ZULIP_SITE",
    "BISECTBOT_ZULIP_EMAIL",
    "BISECTBOT_ZULIP_API_KEY",
)


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""

    @classmethod
    def missing(cls, env_var: str) -> ConfigError:
        """Return an error for a required variable that is unset or blank."""
        return cls(f"{env_var} is required")

    @classmethod
    def invalid(cls, env_var: str, raw: str, reason: str) -> ConfigError:
        """Return an error for a variable whose value cannot be used."""
        return cls(f"{env_var} {reason}, got: {raw!r}")

    @classmethod
    def incomplete_zulip(cls, missing: typ.Iterable[str]) -> ConfigError:
        """Return an error when only part of the Zulip settings are present."""
        names = ", ".join(missing)
        return cls(f"Zulip is partially configured; also set: {names}")


def _required(env_var: str) -> str:
    value = os.environ.get(env_var, "").strip()
    if not value:
        raise ConfigError.missing(env_var)
    return value


def _optional(env_var: str, default: str) -> str:
    value = os.environ.get(env_var, "").strip()
    return value or default


def _parse_repositories(raw: str) -> frozenset[str]:
    repositories = frozenset(part.strip() for part in raw.split(",") if part.strip())
    for repo in repositories:
        if repo.count("/") != 1 or repo.startswith("/") or repo.endswith("/"):
            raise ConfigError.invalid(
                "BISECTBOT_ALLOWED_REPOSITORIES", raw, "must list owner/name slugs"
            )
    return repositories


def _parse_positive_float(env_var: str, default: float) -> float:
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError.invalid(env_var, raw, "must be a number") from exc
    if value <= 0:
        raise ConfigError.invalid(env_var, raw, "must be positive")
    return value


@dc.dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Credentials and endpoints for the GitHub REST API.

    Attributes
    ----------
    username
        Account the bot authenticates and comments as.
    token
        Personal access token for ``username``.
    jobs_repository
        ``owner/name`` of the repository job branches are pushed to.
    api_url
        REST API base URL.

    """

    username: str
    token: str
    jobs_repository: str = _DEFAULT_JOBS_REPOSITORY
    api_url: str = _DEFAULT_GITHUB_API_URL
    user_agent: str = "https://github.com/bjorn3/cargo-bisect-rustc-bot"

    @classmethod
    def from_env(cls) -> GitHubConfig:
        """Read ``BISECTBOT_GITHUB_*`` and ``BISECTBOT_JOBS_REPOSITORY``."""
        return cls(
            username=_required("BISECTBOT_GITHUB_USERNAME"),
            token=_required("BISECTBOT_GITHUB_TOKEN"),
            jobs_repository=_optional(
                "BISECTBOT_JOBS_REPOSITORY", _DEFAULT_JOBS_REPOSITORY
            ),
            api_url=_optional("BISECTBOT_GITHUB_API_URL", _DEFAULT_GITHUB_API_URL),
        )


@dc.dataclass(frozen=True, slots=True)
class ZulipConfig:
    """Credentials for the Zulip bot account and poll loop pacing."""

    site: str
    email: str
    api_key: str
    poll_interval_s: float = _DEFAULT_POLL_INTERVAL_S

    @property
    def api_url(self) -> str:
        """Return the REST API base URL for ``site``."""
        return f"{self.site.rstrip('/')}/api/v1"

    @classmethod
    def from_env(cls) -> ZulipConfig | None:
        """Read ``BISECTBOT_ZULIP_*``; return ``None`` when chat is disabled.

        Raises
        ------
        ConfigError
            If some but not all of the credential variables are set.

        """
        values = {name: os.environ.get(name, "").strip() for name in _ZULIP_VARS}
        if not any(values.values()):
            return None
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ConfigError.incomplete_zulip(missing)
        return cls(
            site=values["BISECTBOT_ZULIP_SITE"],
            email=values["BISECTBOT_ZULIP_EMAIL"],
            api_key=values["BISECTBOT_ZULIP_API_KEY"],
            poll_interval_s=_parse_positive_float(
                "BISECTBOT_ZULIP_POLL_INTERVAL", _DEFAULT_POLL_INTERVAL_S
            ),
        )


@dc.dataclass(frozen=True, slots=True)
class BotConfig:
    """Top-level configuration passed to every component.

    Attributes
    ----------
    github
        GitHub credentials and the jobs repository.
    allowed_repositories
        Repositories whose webhook deliveries are processed; anything else
        is discarded.
    command_prefix
        Case-sensitive bot invocation prefix.
    zulip
        Zulip settings, or ``None`` when the chat channel is disabled.

    """

    github: GitHubConfig
    allowed_repositories: frozenset[str] = frozenset(
        {_DEFAULT_BOT_REPOSITORY, _DEFAULT_JOBS_REPOSITORY}
    )
    command_prefix: str = DEFAULT_PREFIX
    zulip: ZulipConfig | None = None

    @classmethod
    def from_env(cls) -> BotConfig:
        """Build the configuration from ``BISECTBOT_*`` environment variables.

        Raises
        ------
        ConfigError
            If credentials are missing or a value is invalid.

        """
        github = GitHubConfig.from_env()
        raw_allowed = os.environ.get("BISECTBOT_ALLOWED_REPOSITORIES", "")
        allowed = (
            _parse_repositories(raw_allowed)
            if raw_allowed.strip()
            else frozenset({_DEFAULT_BOT_REPOSITORY, github.jobs_repository})
        )
        return cls(
            github=github,
            allowed_repositories=allowed,
            command_prefix=_optional("BISECTBOT_COMMAND_PREFIX", DEFAULT_PREFIX),
            zulip=ZulipConfig.from_env(),
        )


__all__ = ["BotConfig", "ConfigError", "GitHubConfig", "ZulipConfig"]
