"""
Compose-style variable substitution for descriptor files.
"""
import re
from typing import List, Mapping, Optional

# ${VAR}, ${VAR:-default}, ${VAR:+alternative}; $$ escapes a literal $
_PATTERN = re.compile(r'\$\$|\$\{([A-Za-z_][A-Za-z0-9_]*)(?::([-+])([^}]*))?\}')


def interpolate(template: str,
                context: Mapping[str, str],
                missing: Optional[List[str]] = None) -> str:
    """
    Substitutes variables in ``template`` from ``context``.

    An unset ``${VAR}`` becomes an empty string, as compose does.

    :param template: Text containing placeholders.
    :param context: Variable values.
    :param missing: If given, names of unset plain ``${VAR}`` placeholders are appended to it.
    :return: The substituted text.
    """
    def replace(match):
        if match.group(0) == '$$':
            return '$'
        name, modifier, alternative = match.groups()
        value = context.get(name)

        if modifier == '-':
            return value if value else alternative
        if modifier == '+':
            return alternative if value else ''
        if value is None:
            if missing is not None:
                missing.append(name)
            return ''
        return value

    return _PATTERN.sub(replace, template)
