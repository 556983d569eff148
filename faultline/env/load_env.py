import os
from typing import Callable, Dict, Mapping, TypeVar, Union

from dotenv import dotenv_values

from .env import Env

T = TypeVar("T", bound=Env)

PrimaryType = Union[str, int, bool, float, bytes]


def _parse_known(
    source: Mapping[str, str | None],
    parsers: Dict[str, Callable[[str], PrimaryType]],
) -> Dict[str, PrimaryType]:
    return {
        name: parsers[name](value)
        for name, value in source.items()
        if name in parsers and value
    }


def load_env(
    default: type[T],
    env_file: str | None = ".env",
    override: T | None = None,
    environ: Mapping[str, str] | None = None,
) -> T:
    """
    Build settings from, in increasing precedence, the process environment,
    the dotenv file (when it exists), and the fields explicitly set on
    override. Unknown keys are ignored and empty values count as unset.
    """
    parsers = default.types_map()

    if environ is None:
        environ = os.environ

    values = _parse_known(environ, parsers)

    if env_file and os.path.exists(env_file):
        values.update(
            _parse_known(dotenv_values(dotenv_path=env_file), parsers)
        )

    if override is not None:
        values.update(override.model_dump(exclude_unset=True))

        return type(override)(**values)

    return default(**values)
