"""Tests for integration adapters."""

import xml.etree.ElementTree as ET

import pytest

from pair_tree.api import build_tree
from pair_tree.api.adapters import (
    AdapterRegistry,
    AdapterType,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    list_available_adapters,
    pairs_to_text,
    tree_rows,
)
from pair_tree.tree import TreeNode


@pytest.fixture
def tree_result():
    """Successful build of (A(B(D))(C))."""
    return build_tree("(A,B) (A,C) (B,D)")


class TestHelpers:
    """Test module level helpers."""

    def test_tree_rows_preorder(self):
        """Test one row per node with parent, side and depth."""
        root = TreeNode("A", TreeNode("B"), TreeNode("C", None, TreeNode("D")))

        assert tree_rows(root) == [
            {"node": "A", "parent": None, "side": None, "depth": 0},
            {"node": "B", "parent": "A", "side": "left", "depth": 1},
            {"node": "C", "parent": "A", "side": "right", "depth": 1},
            {"node": "D", "parent": "C", "side": "right", "depth": 2},
        ]

    def test_pairs_to_text(self):
        """Test rendering pairs as input text."""
        assert pairs_to_text([("A", "B"), ("A", "C")]) == "(A,B) (A,C)"
        assert pairs_to_text([]) == ""


class TestElementTreeAdapter:
    """Test the standard library element adapter."""

    def test_metadata(self):
        """Test adapter metadata."""
        metadata = ElementTreeAdapter().metadata

        assert metadata.name == "etree"
        assert metadata.adapter_type == AdapterType.XML_LIBRARY
        assert ElementTreeAdapter().is_available()

    def test_export(self, tree_result):
        """Test nested element layout."""
        conversion = ElementTreeAdapter().to_target(tree_result)

        assert conversion.success
        assert conversion.metadata == {"node_count": 4}
        assert ET.tostring(conversion.converted_data, encoding="unicode") == (
            '<node value="A">'
            '<node value="B" side="left"><node value="D" side="left" /></node>'
            '<node value="C" side="right" />'
            '</node>'
        )

    def test_round_trip(self, tree_result):
        """Test exported elements rebuild the same tree."""
        adapter = ElementTreeAdapter()
        element = adapter.to_target(tree_result).converted_data

        conversion = adapter.from_target(element)

        assert conversion.success
        assert conversion.converted_data.output == tree_result.output
        assert conversion.metadata["pair_count"] == 3

    def test_error_build_is_not_exported(self):
        """Test builds with an error code have no tree to convert."""
        conversion = ElementTreeAdapter().to_target(build_tree("(A,B) (C,D)"))

        assert not conversion.success
        assert conversion.converted_data is None
        assert "E5" in conversion.errors[0]

    def test_import_rule_violation(self):
        """Test imported structures are checked by the builder."""
        root = ET.Element("node", value="A")
        for value in "BCD":
            ET.SubElement(root, "node", value=value)

        conversion = ElementTreeAdapter().from_target(root)

        assert conversion.converted_data.output == "E3"

    def test_import_wrong_root_tag(self):
        """Test foreign elements are refused without raising."""
        conversion = ElementTreeAdapter().from_target(ET.Element("tree"))

        assert not conversion.success
        assert "Expected <node>" in conversion.errors[0]
        assert conversion.diagnostics[0].component == "ElementTreeAdapter"

    def test_import_single_node_is_invalid(self):
        """Test a lone node gives no pairs and therefore E1."""
        conversion = ElementTreeAdapter().from_target(ET.Element("node", value="A"))

        assert conversion.converted_data.output == "E1"


class TestLxmlAdapter:
    """Test the lxml adapter."""

    def test_round_trip(self, tree_result):
        """Test export and import with lxml elements."""
        etree = pytest.importorskip("lxml.etree")
        adapter = LxmlAdapter()

        conversion = adapter.to_target(tree_result)

        assert conversion.success
        assert isinstance(conversion.converted_data, etree._Element)
        assert adapter.from_target(conversion.converted_data).converted_data.output == (
            "(A(B(D))(C))"
        )


class TestPandasAdapter:
    """Test the pandas adapter."""

    def test_export(self, tree_result):
        """Test one row per node."""
        pytest.importorskip("pandas")

        frame = PandasAdapter().to_target(tree_result).converted_data

        assert list(frame.columns) == PandasAdapter.COLUMNS
        assert list(frame["node"]) == ["A", "B", "D", "C"]
        assert frame["depth"].max() == 2

    def test_round_trip(self, tree_result):
        """Test a DataFrame rebuilds the tree."""
        pytest.importorskip("pandas")
        adapter = PandasAdapter()

        frame = adapter.to_target(tree_result).converted_data
        conversion = adapter.from_target(frame)

        assert conversion.converted_data.output == "(A(B(D))(C))"

    def test_import_requires_dataframe(self):
        """Test non-frames are refused."""
        pytest.importorskip("pandas")

        conversion = PandasAdapter().from_target([("A", "B")])

        assert not conversion.success
        assert "not a pandas DataFrame" in conversion.errors[0]

    def test_import_requires_columns(self):
        """Test missing columns are reported."""
        pd = pytest.importorskip("pandas")

        conversion = PandasAdapter().from_target(pd.DataFrame({"node": ["A"]}))

        assert not conversion.success
        assert "missing columns" in conversion.errors[0]


class TestAdapterRegistry:
    """Test adapter lookup."""

    def test_builtin_adapters_registered(self):
        """Test the standard library adapter is always listed."""
        names = [metadata.name for metadata in list_available_adapters()]

        assert "etree" in names
        assert isinstance(get_adapter("etree", "cid"), ElementTreeAdapter)
        assert get_adapter("etree", "cid").correlation_id == "cid"
        assert get_adapter("unknown") is None

    def test_unavailable_adapter_is_hidden(self):
        """Test adapters whose library is missing are not returned."""

        class MissingAdapter(ElementTreeAdapter):
            @property
            def metadata(self):
                metadata = super().metadata
                metadata.name = "missing"
                return metadata

            def is_available(self):
                return False

        registry = AdapterRegistry()
        registry.register(MissingAdapter)

        assert registry.get_adapter("missing") is None
        assert registry.list_available_adapters() == []

    def test_adapter_is_abstract(self):
        """Test the base class cannot be instantiated."""
        with pytest.raises(TypeError):
            IntegrationAdapter()
