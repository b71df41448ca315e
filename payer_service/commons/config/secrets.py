import os
from abc import ABC
from dataclasses import dataclass, replace
from typing import Optional

from typing_extensions import final


@final
@dataclass(frozen=True)
class Secret:
    """
    Holds a string secret config value that should not be revealed in logging and etc.
    """

    name: str
    version: Optional[int] = None
    value: Optional[str] = None

    def __post_init__(self):
        assert self.name.islower(), "name of secret should always be lower cased"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}-{self.name}-Ver[{self.version}]('**********')"
        )

    def __str__(self) -> str:
        return (
            f"{self.__class__.__name__}-{self.name}-Ver[{self.version}]('**********')"
        )

    @classmethod
    def from_env(cls, name: str, env: str, default: Optional[str] = None):
        value = os.getenv(env, default)
        if value is None:
            raise KeyError(f"Environment variable={env} for secret={name} not defined")
        return cls(name=name, version=None, value=value)


class SecretLoader:
    """
    Fetches the actual value of a Secret holder from the process environment.
    The environment variable of a secret is its upper cased name, e.g. stripe_us_secret_key -> STRIPE_US_SECRET_KEY.
    """

    def fetch_secret(self, *, secret_holder: Secret) -> Secret:
        env = secret_holder.name.upper()
        secret_val = os.getenv(env)
        if secret_val is None:
            raise KeyError(f"secret={secret_holder} is not found in environment={env}")
        return replace(secret_holder, value=secret_val)


class SecretAware(ABC):
    """
    Marker interface for config objects containing secrets.
    An instance of any subclass of this interface should contain config values as Secret type
    """

    pass


def load_up_secret_aware_recursively(
    *, secret_aware: SecretAware, secret_loader: Optional[SecretLoader]
):
    for key in dir(secret_aware):
        if key.startswith("__"):
            continue
        item = getattr(secret_aware, key)
        if isinstance(item, Secret) and item.value is None:
            if not secret_loader:
                raise KeyError(f"secret_holder={item} is not defined")
            loaded_secret = secret_loader.fetch_secret(secret_holder=item)
            object.__setattr__(secret_aware, key, loaded_secret)
        elif isinstance(item, SecretAware):
            load_up_secret_aware_recursively(
                secret_aware=item, secret_loader=secret_loader
            )
