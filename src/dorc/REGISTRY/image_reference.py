# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Image reference parsing.
Splits references like 'registry.local:5000/ns/name:tag-1.2' into the
repository name and the tag, as needed when pushing an image.
"""

import re
from typing import Optional
from dataclasses import dataclass


# A tag is the last ':'-separated component, and can never contain '/',
# so the port in 'host:5000/name' is never mistaken for one.
_TAG_PATTERN = re.compile(r"^(.*):([\w][\w.-]{0,127})$")


@dataclass(frozen=True)
class ImageReference:
    """
    Parsed image reference: [REGISTRYHOST[:PORT]/][USERNAME/]NAME[:TAG]

    Examples:
        - thename -> name 'thename', no tag
        - username/thename:tag-1.2 -> name 'username/thename', tag 'tag-1.2'
        - docker.local:5000/thename -> name 'docker.local:5000/thename', no tag
    """

    name: str
    tag: Optional[str] = None

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse an image reference string.

        Args:
            reference: Image reference string (e.g., 'nginx:latest', 'localhost:5000/myimage')

        Returns:
            Parsed ImageReference object.
        """
        if not reference:
            raise ValueError("Empty image reference")

        match = _TAG_PATTERN.match(reference)
        if match:
            return cls(name=match.group(1), tag=match.group(2))
        return cls(name=reference)

    @property
    def has_tag(self) -> bool:
        return self.tag is not None

    @property
    def registry(self) -> Optional[str]:
        """
        Registry host of the reference, if it names one.
        The first path component is a registry only when it looks like a
        host: it contains '.' or ':' or is 'localhost'.
        """
        first, sep, _ = self.name.partition("/")
        if sep and ("." in first or ":" in first or first == "localhost"):
            return first
        return None

    def __str__(self) -> str:
        return f"{self.name}:{self.tag}" if self.tag else self.name

    def __repr__(self) -> str:
        return f"ImageReference({self})"
