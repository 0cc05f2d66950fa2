"""Methods for retrieving the program configuration."""

import contextlib
import functools
import importlib.machinery
import importlib.util
import logging
import os
import sys
from types import ModuleType
from typing import Any

from testquarantine import configdef


# Cache configuration module here
config_module = None

CONFIG_FILE = 'testquarantinerc'

# Config variables that override all others
overrides = {}


def _xdg_dir(var: str, *home_path: str) -> str:
    """Get an XDG base directory, falling back to its standard location under $HOME."""
    if var in os.environ:
        return os.environ[var]
    if 'HOME' in os.environ:
        return os.path.join(os.environ['HOME'], *home_path)
    return '.'


def config_dir() -> str:
    """Get the directory in which to find the configuration file."""
    return _xdg_dir('XDG_CONFIG_HOME', '.config')


def persistent_dir() -> str:
    """Get the directory in which to store the quarantine database."""
    return _xdg_dir('XDG_DATA_HOME', '.local', 'share')


def environ() -> dict[str, str]:
    """Return a dict with the config environment.

    Config variables take precedence over process environment variables and overrides
    take precedence over both.
    """
    env = {**os.environ, **configdef.__dict__, **config().__dict__, **overrides}
    env.setdefault('XDG_CONFIG_HOME', config_dir())
    env.setdefault('XDG_DATA_HOME', persistent_dir())
    return env


def expandstr(var: str) -> str:
    """Expand {NAME} references in a string with config environment variables."""
    return var.format(**environ())


@functools.lru_cache(maxsize=None)
def expand(var: str) -> str:
    """Get a config variable and expand it with environment variables."""
    return expandstr(get(var))


@functools.lru_cache(maxsize=None)
def get(var: str) -> Any:
    """Get a raw config variable."""
    return environ()[var]


@contextlib.contextmanager
def override_var(obj, name: str, value: Any):
    """Change an object attribute within a with context, restoring it on exit."""
    saved_value = getattr(obj, name)
    setattr(obj, name, value)
    try:
        yield saved_value
    finally:
        setattr(obj, name, saved_value)


def config() -> ModuleType:
    """Return the user's configuration file as a module."""
    global config_module
    if config_module:
        return config_module

    configfn = os.path.join(config_dir(), CONFIG_FILE)
    if (os.access(configfn, os.R_OK)
        and (spec := importlib.util.spec_from_loader(
             CONFIG_FILE,
             importlib.machinery.SourceFileLoader(CONFIG_FILE, configfn)))):
        config_module = importlib.util.module_from_spec(spec)

        # A stale bytecode file next to the config would hide edits to it
        with override_var(sys, 'dont_write_bytecode', True):
            spec.loader.exec_module(config_module)
    else:
        logging.info('Configuration file %s not found', configfn)
        config_module = ModuleType('empty')

    return config_module  # noqa: R504


def add_override(name: str, value: Any):
    """Add a config variable that overrides all others."""
    overrides[name] = value
    # Values already looked up may be stale now
    get.cache_clear()
    expand.cache_clear()
