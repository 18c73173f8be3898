from .tree import DocumentTree, NodeIndex

__all__ = ["DocumentTree", "NodeIndex"]
