"""Integration adapters for exporting and importing built trees.

Adapters convert a successful ``BuildResult`` into another library's
representation (lxml or ElementTree elements, pandas DataFrames) and convert
such representations back into pair text that is rebuilt with
``build_tree``. Conversions never raise; they return ``ConversionResult``.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple, Type

from pair_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from pair_tree.tree import BuildResult, TreeNode

NODE_TAG = "node"


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # Element trees (lxml, xml.etree)
    DATA_FRAME = auto()      # Tabular libraries (pandas)


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    adapter_type: AdapterType
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


def tree_rows(root: TreeNode) -> List[Dict[str, Any]]:
    """Flatten a tree to one row per node in pre-order."""
    rows: List[Dict[str, Any]] = []
    stack: List[Tuple[TreeNode, Optional[str], Optional[str], int]] = [(root, None, None, 0)]
    while stack:
        node, parent, side, depth = stack.pop()
        rows.append({"node": node.value, "parent": parent, "side": side, "depth": depth})
        if node.right is not None:
            stack.append((node.right, node.value, "right", depth + 1))
        if node.left is not None:
            stack.append((node.left, node.value, "left", depth + 1))
    return rows


def pairs_to_text(pairs: List[Tuple[str, str]]) -> str:
    """Render (parent, child) pairs as builder input."""
    return " ".join(f"({parent},{child})" for parent, child in pairs)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def _export(self, root: TreeNode) -> Any:
        """Convert a tree to the target representation."""

    @abstractmethod
    def _import_pairs(self, target_data: Any) -> List[Tuple[str, str]]:
        """Read (parent, child) pairs out of the target representation."""

    def to_target(self, build_result: BuildResult) -> ConversionResult:
        """Convert the tree of a successful build.

        Builds that produced an error code have no tree to convert and give
        an unsuccessful result.
        """
        start_time = time.time()

        if not build_result.is_tree:
            return self._create_error_result(
                f"Build produced no tree (output {build_result.output!r})",
                build_result,
                (time.time() - start_time) * 1000
            )

        try:
            converted = self._export(build_result.root)
        except Exception as e:
            self._logger.exception("Export failed")
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                build_result,
                (time.time() - start_time) * 1000
            )

        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=build_result,
            conversion_time_ms=(time.time() - start_time) * 1000,
            metadata={"node_count": build_result.node_count},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Rebuild a tree from the target representation.

        The converted data is the ``BuildResult`` of the rebuilt pairs, so
        rule violations in the imported data surface as error codes.
        """
        from pair_tree.api.parser import build_tree

        start_time = time.time()
        try:
            pairs = self._import_pairs(target_data)
        except Exception as e:
            self._logger.exception("Import failed")
            return self._create_error_result(
                f"Failed to convert from {self.metadata.target_library}: {e}",
                target_data,
                (time.time() - start_time) * 1000
            )

        text = pairs_to_text(pairs)
        build_result = build_tree(text, correlation_id=self.correlation_id)
        return ConversionResult(
            success=build_result.success,
            converted_data=build_result,
            original_data=target_data,
            conversion_time_ms=(time.time() - start_time) * 1000,
            metadata={"pair_count": len(pairs), "input": text},
        )

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


class _ElementAdapterMixin:
    """Shared element layout: ``<node value="A" side="left">`` nested."""

    def _export_with(self, root: TreeNode, etree: Any) -> Any:
        element = etree.Element(NODE_TAG, value=root.value)
        stack = [(root, element)]
        while stack:
            node, node_element = stack.pop()
            for side, child in (("left", node.left), ("right", node.right)):
                if child is None:
                    continue
                child_element = etree.SubElement(
                    node_element, NODE_TAG, value=child.value, side=side
                )
                stack.append((child, child_element))
        return element

    @staticmethod
    def _pairs_from_element(element: Any) -> List[Tuple[str, str]]:
        if element.tag != NODE_TAG:
            raise ValueError(f"Expected <{NODE_TAG}> root element, got <{element.tag}>")
        pairs: List[Tuple[str, str]] = []
        stack = [element]
        while stack:
            current = stack.pop()
            for child in current:
                pairs.append((current.get("value"), child.get("value")))
                stack.append(child)
        return pairs


class LxmlAdapter(_ElementAdapterMixin, IntegrationAdapter):
    """Adapter for conversion with lxml.etree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            description="Conversion between built trees and lxml.etree elements",
        )

    def is_available(self) -> bool:
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    def _export(self, root: TreeNode) -> Any:
        import lxml.etree as ET

        return self._export_with(root, ET)

    def _import_pairs(self, target_data: Any) -> List[Tuple[str, str]]:
        return self._pairs_from_element(target_data)


class ElementTreeAdapter(_ElementAdapterMixin, IntegrationAdapter):
    """Adapter for conversion with the standard library ElementTree."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="etree",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="xml.etree.ElementTree",
            description="Conversion between built trees and ElementTree elements",
        )

    def is_available(self) -> bool:
        return True

    def _export(self, root: TreeNode) -> Any:
        import xml.etree.ElementTree as ET

        return self._export_with(root, ET)

    def _import_pairs(self, target_data: Any) -> List[Tuple[str, str]]:
        return self._pairs_from_element(target_data)


class PandasAdapter(IntegrationAdapter):
    """Adapter for conversion with pandas DataFrames.

    Exported frames have one row per node with columns ``node``, ``parent``,
    ``side`` and ``depth``; imported frames need ``parent`` and ``node``.
    """

    COLUMNS = ["node", "parent", "side", "depth"]

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            version="1.0.0",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            description="Conversion between built trees and pandas DataFrames",
        )

    def is_available(self) -> bool:
        try:
            import pandas  # noqa: F401
        except ImportError:
            return False
        return True

    def _export(self, root: TreeNode) -> Any:
        import pandas as pd

        return pd.DataFrame(tree_rows(root), columns=self.COLUMNS)

    def _import_pairs(self, target_data: Any) -> List[Tuple[str, str]]:
        import pandas as pd

        if not isinstance(target_data, pd.DataFrame):
            raise TypeError("Target data is not a pandas DataFrame")
        missing = {"parent", "node"} - set(target_data.columns)
        if missing:
            raise ValueError(f"DataFrame is missing columns: {sorted(missing)}")

        linked = target_data[target_data["parent"].notna()]
        return list(zip(linked["parent"], linked["node"]))


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance, or None if unknown or unavailable."""
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        with self._lock:
            classes = list(self._adapters.values())
        instances = [adapter_class() for adapter_class in classes]
        return [instance.metadata for instance in instances if instance.is_available()]


_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance if its library is available."""
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List metadata of registered adapters whose library is importable."""
    return _adapter_registry.list_available_adapters()


register_adapter(LxmlAdapter)
register_adapter(ElementTreeAdapter)
register_adapter(PandasAdapter)
