import fnmatch
import os
import tomllib
from dataclasses import dataclass, field
from typing import List

DEFAULT_RECORDER_MODULE = 'covforge.recorder'
DEFAULT_RECORDER_NAME = 'rcov'

def canonical_path(path) -> str:
    '''
    Host-normalized file identifier, stable for the whole run
    '''
    return os.path.normpath(os.fspath(path)).replace(os.sep, '/')

@dataclass
class InstrumentConfig:
    ignore_globs: List[str] = field(default_factory=list)
    recorder_module: str = DEFAULT_RECORDER_MODULE
    recorder_name: str = DEFAULT_RECORDER_NAME

    def is_ignored(self, path) -> bool:
        path = canonical_path(path)
        name = os.path.basename(path)
        return any(fnmatch.fnmatchcase(path, pattern) or fnmatch.fnmatchcase(name, pattern)
                   for pattern in self.ignore_globs)

def load_config(pyproject_path, **overrides) -> InstrumentConfig:
    '''
    Reads the [tool.covforge] table of a pyproject.toml

        [tool.covforge]
        ignore = ["tests/*", "*_pb2.py"]
        recorder-module = "covforge.recorder"
        recorder-name = "rcov"

    A missing file or table gives the defaults. Keyword overrides that are not None
    win over the file
    '''
    table = {}
    if pyproject_path is not None and os.path.exists(pyproject_path):
        with open(pyproject_path, 'rb') as file:
            table = tomllib.load(file).get('tool', {}).get('covforge', {})

    config = InstrumentConfig(
        ignore_globs=list(table.get('ignore', [])),
        recorder_module=table.get('recorder-module', DEFAULT_RECORDER_MODULE),
        recorder_name=table.get('recorder-name', DEFAULT_RECORDER_NAME),
    )

    for key, value in overrides.items():
        if value is None:
            continue
        if key == 'ignore_globs':
            config.ignore_globs.extend(value)
        else:
            setattr(config, key, value)

    return config
