from __future__ import annotations

from typing import Dict, List, Optional, Tuple
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET

CONFIGURATION = "configuration"


class ConfigDocument:
    """
    Query facade over one parsed export document.

    The root element is <datapower-configuration>; paths passed to select()
    are relative to it. Named configuration objects are looked up through
    a lazily built index so repeated references stay cheap.
    """

    def __init__(self, root: Element) -> None:
        self.root = root
        self._named: Dict[Tuple[str, str], Element] = {}
        self._indexed: set[str] = set()

    @classmethod
    def from_bytes(cls, data: bytes) -> "ConfigDocument":
        return cls(ET.fromstring(data))

    def select(self, path: str) -> List[Element]:
        return self.root.findall(path)

    def configuration(self, tag: str) -> List[Element]:
        return self.root.findall(f"{CONFIGURATION}/{tag}")

    def find_named(self, tag: str, name: str) -> Optional[Element]:
        """Return the first configuration/<tag> whose name attribute equals name."""
        if tag not in self._indexed:
            for node in self.configuration(tag):
                # First definition wins, like a linear search would.
                self._named.setdefault((tag, node.get("name", "")), node)
            self._indexed.add(tag)
        return self._named.get((tag, name))


def select(node: Optional[Element], path: str) -> List[Element]:
    if node is None:
        return []
    return node.findall(path)


def text_content(node: Element) -> str:
    return "".join(node.itertext())


def elem_text(node: Optional[Element], path: str) -> Optional[str]:
    """Text content of the first match, or None when nothing matches."""
    if node is None:
        return None
    elem = node.find(path)
    if elem is None:
        return None
    return text_content(elem)


def elem_attr(node: Optional[Element], path: str, attr: str) -> Optional[str]:
    if node is None:
        return None
    elem = node.find(path)
    if elem is None:
        return None
    return elem.get(attr)
