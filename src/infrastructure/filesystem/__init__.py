"""Filesystem infrastructure module."""
from .deadline_file import DeadlineFile
from .directory_manager import DirectoryManager
from .error_mapper import error_from_errno, map_os_error, translate_os_errors
from .file_mode import FileMode
from .path_normalizer import PathNormalizer

__all__ = [
    'DeadlineFile',
    'DirectoryManager',
    'FileMode',
    'PathNormalizer',
    'error_from_errno',
    'map_os_error',
    'translate_os_errors'
]
