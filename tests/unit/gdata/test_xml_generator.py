"""
Unit tests for the streaming XML generator.

@testCovers gdata_wire/lib/wireformats/xml_generator.py
"""

import io
import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from gdata_wire.lib.model import (AttributeKey, AttributeMetadata, BlobCapture, Cardinality,
                                  Element, ElementKey, MetadataRegistry, QName, XmlBlob,
                                  XmlNamespace, XmlWireFormatProperties)
from gdata_wire.lib.wireformats import (ElementGenerator, StreamProperties, XmlGenerator,
                                        XmlParser, calculate_namespaces)
from schema_fixtures import (ATOM, ATOM_URI, ENTRY, EVENT_SOURCES, EXT_URI, GD_URI, RATING,
                             TITLE, entry_metadata, sample_entry, stream_properties)

SAMPLE_XML = (
    f'<entry xmlns="{ATOM_URI}" xmlns:gd="{GD_URI}" gd:etag=\'W/"C0QBRXc"\'>'
    '<id>tag:example.com,2024:entry-1</id>'
    '<title>Fish &amp; Chips &lt;menu&gt;</title>'
    '<updated>2024-01-02T03:04:05Z</updated>'
    '<category term="food"/>'
    '<link rel="self" href="http://example.com/1"/>'
    '<link rel="alternate" href="http://example.com/1.html"/>'
    '<gd:rating value="4" max="5" priority="high"/>'
    '</entry>'
)


SAMPLE_XML_PRETTY = (
    f'<entry xmlns="{ATOM_URI}" xmlns:gd="{GD_URI}" gd:etag=\'W/"C0QBRXc"\'>\n'
    '  <id>tag:example.com,2024:entry-1</id>\n'
    '  <title>Fish &amp; Chips &lt;menu&gt;</title>\n'
    '  <updated>2024-01-02T03:04:05Z</updated>\n'
    '  <category term="food"/>\n'
    '  <link rel="self" href="http://example.com/1"/>\n'
    '  <link rel="alternate" href="http://example.com/1.html"/>\n'
    '  <gd:rating value="4" max="5" priority="high"/>\n'
    '</entry>'
)


def generate(element, metadata=None, pretty_print=False, **kwargs):
    generator = XmlGenerator(stream_properties(metadata, pretty_print), **kwargs)
    generator.generate(element)
    return generator.getvalue()


class TestXmlGenerator(unittest.TestCase):
    """Test writing element trees."""

    def test_generate_entry(self):
        """Test the complete output for an entry with metadata."""
        self.assertEqual(generate(sample_entry(), entry_metadata()), SAMPLE_XML)

    def test_round_trip(self):
        """Test that generated output parses back into an equal tree."""
        metadata = entry_metadata()
        xml = generate(sample_entry(), metadata)
        for source, create in EVENT_SOURCES.items():
            with self.subTest(source=source):
                parsed = XmlParser(stream_properties(metadata), create(xml)).parse(
                    metadata.create_element())
                self.assertEqual(parsed, sample_entry())

    def test_pretty_print(self):
        """Test indented output and that it reads back into the same tree."""
        metadata = entry_metadata()
        xml = generate(sample_entry(), metadata, pretty_print=True)
        self.assertEqual(xml, SAMPLE_XML_PRETTY)

        for source, create in EVENT_SOURCES.items():
            with self.subTest(source=source):
                parsed = XmlParser(stream_properties(metadata), create(xml)).parse(
                    metadata.create_element())
                self.assertEqual(parsed, sample_entry())

    def test_pretty_print_keeps_text_content(self):
        """Test that an element with text and children is written without indentation."""
        a_key = ElementKey.of("{urn:t}a", str)
        root = Element(ElementKey.of("{urn:t}root"))
        b = Element(ElementKey.of("{urn:t}b"))
        b.add_element(Element(ElementKey.of("{urn:t}c")))
        root.add_element(Element(a_key, "x").add_element(b))

        self.assertEqual(generate(root, pretty_print=True),
                         '<root xmlns="urn:t">\n  <a><b><c/></b>x</a>\n</root>')

    def test_namespaces_declared_once_on_root(self):
        """Test that one declaration per URI is made and reused by all aliases."""
        root = Element(QName(XmlNamespace("a", "urn:one"), "root"))
        root.add_element(Element(QName(XmlNamespace("x", "urn:shared"), "c1")))
        c2 = Element(QName(XmlNamespace("y", "urn:shared"), "c2"))
        c2.set_attribute_value(QName(XmlNamespace("z", "urn:shared"), "attr"), "v")
        root.add_element(c2)

        self.assertEqual(
            generate(root, default_namespace=None),
            '<a:root xmlns:a="urn:one" xmlns:x="urn:shared"><x:c1/><x:c2 x:attr="v"/></a:root>')

    def test_alias_clash_renamed(self):
        """Test that an alias bound to another URI gets a numbered alias."""
        root = Element(QName(XmlNamespace("p", "urn:a"), "root"))
        root.add_element(Element(QName(XmlNamespace("p", "urn:b"), "c")))

        self.assertEqual(generate(root, default_namespace=None),
                         '<p:root xmlns:p="urn:a" xmlns:p1="urn:b"><p1:c/></p:root>')

    def test_root_namespace_is_default(self):
        """Test that the root element's namespace becomes the default namespace."""
        feed = Element(QName(ATOM, "feed"))
        self.assertEqual(generate(feed), f'<feed xmlns="{ATOM_URI}"/>')

    def test_selectors_skip_elements_and_attributes(self):
        """Test that unselected elements and attributes are left out."""
        registry = MetadataRegistry()
        root_key = ElementKey.of("{urn:t}root")
        item_key = ElementKey.of("{urn:t}item", str)
        secret = AttributeKey.of("secret")
        registry.declare(item_key, cardinality=Cardinality.MULTIPLE,
                         attributes=[AttributeMetadata(secret, selector=lambda e: False)],
                         selector=lambda e: e.text_value != "hidden")
        root_meta = registry.declare(root_key, elements=[item_key])

        root = Element(root_key)
        root.add_element(Element(item_key, "outer").set_attribute_value(secret, "s"))
        hidden = Element(item_key, "hidden")
        hidden.add_element(Element(ElementKey.of("{urn:other}nested")))
        root.add_element(hidden)

        self.assertEqual(generate(root, root_meta),
                         '<root xmlns="urn:t"><item>outer</item></root>')

    def test_custom_element_generator(self):
        """Test that an element generator can write a complete element itself."""

        class UpperCaseGenerator(ElementGenerator):
            def start_element(self, xw, parent, e, metadata):
                xw.start_element(metadata.name.ns, metadata.name.local_name,
                                 [(None, "type", "text")])
                xw.characters(e.text_value.upper())
                xw.end_element()
                return False

            def text_content(self, xw, e, metadata):
                raise AssertionError("not called for complete elements")

            def end_element(self, xw, e, metadata):
                raise AssertionError("not called for complete elements")

        registry = MetadataRegistry()
        root_key = ElementKey.of("{urn:t}root")
        summary_key = ElementKey.of("{urn:t}summary", str)
        registry.declare(summary_key, properties=XmlWireFormatProperties(UpperCaseGenerator()))
        root_meta = registry.declare(root_key, elements=[summary_key])

        root = Element(root_key)
        summary = Element(summary_key, "hello")
        summary.add_element(Element(ElementKey.of("{urn:t}skipped")))
        root.add_element(summary)

        self.assertEqual(generate(root, root_meta),
                         '<root xmlns="urn:t"><summary type="text">HELLO</summary></root>')

    def test_metadata_key_mismatch(self):
        """Test that metadata for another element type is rejected."""
        metadata = entry_metadata()
        generator = XmlGenerator(stream_properties(metadata))
        with self.assertRaises(ValueError):
            generator.generate(Element(RATING), metadata)

    def test_blob_written_back(self):
        """Test that captured foreign XML is written back and reads the same."""
        metadata = entry_metadata(blob_capture=BlobCapture())
        doc = (f'<entry xmlns="{ATOM_URI}" xmlns:ext="{EXT_URI}"><title>t</title>'
               '<ext:thing ext:kind="a">v</ext:thing></entry>')
        entry = XmlParser(stream_properties(metadata),
                          EVENT_SOURCES["lxml"](doc)).parse(metadata.create_element())

        xml = generate(entry, metadata)
        self.assertEqual(
            xml,
            f'<entry xmlns="{ATOM_URI}" xmlns:ext="{EXT_URI}"><title>t</title>'
            f'<ext:thing xmlns:ext="{EXT_URI}" ext:kind="a">v</ext:thing></entry>')

        reparsed = XmlParser(stream_properties(metadata),
                             EVENT_SOURCES["expat"](xml)).parse(metadata.create_element())
        self.assertEqual(reparsed, entry)

    def test_binary_output_with_header(self):
        """Test encoded output with an XML declaration."""
        entry = Element(ENTRY)
        entry.add_element(Element(TITLE, "Café"))

        out = io.BytesIO()
        XmlGenerator(StreamProperties(None, encoding="utf-8", write_header=True), out).generate(entry)
        self.assertEqual(out.getvalue(),
                         "<?xml version='1.0' encoding='UTF-8'?>"
                         f'<entry xmlns="{ATOM_URI}"><title>Café</title></entry>'
                         .encode("utf-8"))

        out = io.BytesIO()
        XmlGenerator(StreamProperties(None, encoding="us-ascii", write_header=False),
                     out).generate(entry)
        self.assertEqual(out.getvalue(),
                         f'<entry xmlns="{ATOM_URI}"><title>Caf&#233;</title></entry>'.encode())


class TestCalculateNamespaces(unittest.TestCase):
    """Test the root namespace declarations."""

    def test_default_namespace_dropped(self):
        """Test that the default namespace needs no prefix declaration."""
        entry = sample_entry()
        namespaces = calculate_namespaces(entry, entry_metadata(), ATOM)
        self.assertEqual([(ns.alias, ns.uri) for ns in namespaces.values()], [("gd", GD_URI)])

    def test_default_namespace_kept_for_attributes(self):
        """Test that the default namespace keeps a prefix when an attribute uses it."""
        entry = Element(ENTRY)
        entry.set_attribute_value(QName(ATOM, "lang"), "en")
        namespaces = calculate_namespaces(entry, None, ATOM)
        self.assertEqual([(ns.alias, ns.uri) for ns in namespaces.values()], [("atom", ATOM_URI)])

    def test_blob_namespaces_included(self):
        """Test that namespaces recorded in a blob are declared on the root."""
        entry = Element(ENTRY)
        entry.xml_blob = XmlBlob()
        entry.xml_blob.blob = '<e:x xmlns:e="urn:e"/>'
        entry.xml_blob.namespaces.append(XmlNamespace("e", "urn:e"))
        namespaces = calculate_namespaces(entry, None, ATOM)
        self.assertIn("urn:e", namespaces)


if __name__ == '__main__':
    unittest.main()
