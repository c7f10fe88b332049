"""
Parsers for properties files supplying placeholder values to the config.
"""
from typing import Dict


class PropertiesParser:
    """
    Parser for key=value (or key: value) properties files.
    """
    @staticmethod
    def parse(path: str) -> Dict[str, str]:
        """
        Parses a properties file from a path.

        Args:
            path (str): Path to the properties file.

        Returns:
            Dict[str, str]: Property values by name.
        """
        with open(path, 'r') as f:
            content = f.read()
        return PropertiesParser.parse_from_string(content)

    @staticmethod
    def parse_from_string(content: str) -> Dict[str, str]:
        """
        Parses properties from a string.
        Handles quotes, '#' and '!' comments, and both '=' and ':' separators.
        """
        props = {}
        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith('#') or line.startswith('!'):
                continue

            # the first separator wins, so values may contain either character
            seps = [i for i in (line.find('='), line.find(':')) if i != -1]
            if not seps:
                continue
            idx = min(seps)
            key = line[:idx].strip()
            value = line[idx + 1:].strip()

            if not key:
                continue

            if value.startswith('"') or value.startswith("'"):
                quote = value[0]
                end_quote_idx = value.find(quote, 1)
                if end_quote_idx != -1:
                    value = value[1:end_quote_idx]
            elif ' #' in value:
                value = value.split(' #')[0].strip()

            props[key] = value

        return props
