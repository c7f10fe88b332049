"""
Utilities for substituting property placeholders into raw config text.
"""
import re
from typing import Mapping

# Group 1: property name, group 2: '-' or '+' modifier, group 3: alternate value
_PLACEHOLDER = re.compile(r'\$\{([^}:]+)(?::(-|\+)([^}]*))?\}')


class PropertyInterpolator:
    """
    Substitutes ${name}, ${name:-default} and ${name:+value} placeholders.
    """
    @staticmethod
    def interpolate(template: str, properties: Mapping[str, str], strict: bool = False) -> str:
        """
        Interpolates properties into the template string.

        :param template: The string containing ${name} placeholders.
        :param properties: Property values by name.
        :param strict: Raise instead of leaving an unknown ${name} as written.
        :return: The interpolated string.
        :raises KeyError: In strict mode, if a property is not found and no default is provided.
        """
        def replace(match):
            name = match.group(1).strip()
            modifier = match.group(2)
            alt_value = match.group(3)

            value = properties.get(name)

            if modifier == '-':
                # use default if unset or empty
                return value if value else alt_value
            if modifier == '+':
                # use alternate if set and not empty
                return alt_value if value else ''
            if value is not None:
                return str(value)
            if strict:
                raise KeyError(f"Property {name} not found")
            return match.group(0)

        return _PLACEHOLDER.sub(replace, template)
