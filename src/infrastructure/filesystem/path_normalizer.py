"""Path string normalization module."""
import re


class PathNormalizer:
    """Pure string transformations over POSIX paths.

    Nothing here touches the filesystem. The rules cover absolute and
    relative paths, including the single-character root and single-component
    relative paths, so that recursive directory creation can walk up a path
    without asking the OS.
    """

    SEPARATOR = '/'

    # Two or more consecutive separators
    SEPARATOR_RUN = re.compile(r'/{2,}')

    @classmethod
    def fix_slashes(
        cls,
        path: str,
        compress: bool = True,
        strip_trailing: bool = True
    ) -> str:
        """Collapse separator runs and drop a trailing separator."""
        if path == cls.SEPARATOR:
            return path

        result = path

        if compress:
            result = cls.SEPARATOR_RUN.sub(cls.SEPARATOR, result)

        if strip_trailing and result != cls.SEPARATOR and result.endswith(cls.SEPARATOR):
            result = result[:-1]

        return result

    @classmethod
    def start_of_last_path_component(cls, path: str) -> int:
        """Index just after the last separator, or 0 if there is none.

        The path must not end in a separator and must be longer than one
        character; call ``fix_slashes`` first when unsure.
        """
        if path.endswith(cls.SEPARATOR) or len(path) <= 1:
            raise ValueError(
                f"Path '{path}' must not end in '/' and must be longer than one character"
            )

        position = len(path)
        while position > 0:
            if path[position - 1] == cls.SEPARATOR:
                break
            position -= 1

        return position

    @classmethod
    def drop_last_path_component(cls, path: str) -> str:
        """Parent of ``path``; '' for a single relative component."""
        string = cls.fix_slashes(path)

        if string == cls.SEPARATOR:
            return string

        # relative path, single component (covers one-character names)
        if cls.SEPARATOR not in string:
            return ''

        start_of_last = cls.start_of_last_path_component(string)

        # absolute path, single component
        if start_of_last == 1:
            return cls.SEPARATOR

        return string[:start_of_last - 1]

    @classmethod
    def last_path_component(cls, path: str) -> str:
        """Final component of ``path``; '/' for the root."""
        string = cls.fix_slashes(path)

        if string == cls.SEPARATOR or cls.SEPARATOR not in string:
            return string

        return string[cls.start_of_last_path_component(string):]
