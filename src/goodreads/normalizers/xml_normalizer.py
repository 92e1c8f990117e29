"""Normalizer for XML responses.

GoodReads wraps every XML response in a ``<GoodreadsResponse>`` envelope.
The envelope is dropped and the rest of the tree is flattened into the same
shape a JSON document with the same structure would decode to:

    <GoodreadsResponse>
      <book id="1">
        <title><![CDATA[Dune]]></title>
        <authors><author><name>Frank Herbert</name></author></authors>
      </book>
    </GoodreadsResponse>

becomes

    {"book": {"@attributes": {"id": "1"},
              "title": "Dune",
              "authors": {"author": {"name": "Frank Herbert"}}}}
"""

from typing import Any

from lxml import etree

from ..errors import ProtocolError
from .base import ResponseFormat, ResponseNormalizer

ATTRIBUTES_KEY = "@attributes"
TEXT_KEY = "#text"


class XMLNormalizer(ResponseNormalizer):
    """Flatten XML documents into nested dicts and lists.

    Rules, per element:
    - no attributes and no child elements: the element's text, verbatim
      (CDATA sections are kept as text); an empty element becomes ``{}``
    - child elements become keys; repeated names collapse into a list
    - attributes go under ``@attributes``
    - text next to attributes or children goes under ``#text`` unless it is
      only whitespace
    """

    format = ResponseFormat.XML

    def __init__(self):
        self.parser = etree.XMLParser(
            strip_cdata=False,
            resolve_entities=False,
            no_network=True,
            remove_comments=True,
            remove_pis=True,
        )

    def normalize(self, body: bytes) -> Any:
        if isinstance(body, str):
            body = body.encode("utf-8")

        try:
            root = etree.fromstring(body, parser=self.parser)
        except etree.XMLSyntaxError as e:
            raise ProtocolError(f"Malformed XML response: {e}", body=body) from e

        if root is None:
            raise ProtocolError("XML response has no document element", body=body)

        result = self._convert(root)
        if not isinstance(result, dict):
            # Text-only envelope
            result = {TEXT_KEY: result}
        return result

    def _convert(self, element: etree._Element) -> Any:
        attributes = {_local_name(name): value for name, value in element.attrib.items()}
        children = [child for child in element if isinstance(child.tag, str)]
        text = element.text or ""

        if not attributes and not children:
            return text if text else {}

        result: dict[str, Any] = {}
        if attributes:
            result[ATTRIBUTES_KEY] = attributes

        grouped: dict[str, list[Any]] = {}
        for child in children:
            grouped.setdefault(_local_name(child.tag), []).append(self._convert(child))
        for name, values in grouped.items():
            result[name] = values[0] if len(values) == 1 else values

        if text.strip():
            result[TEXT_KEY] = text

        return result


def _local_name(tag: str) -> str:
    """Strip any '{namespace}' prefix from a tag or attribute name."""
    return etree.QName(tag).localname
