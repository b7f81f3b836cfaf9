"""Todo hierarchy: forest index and reorder/reparent engine."""

from nestlist.tree.engine import TodoEngine
from nestlist.tree.forest import TodoForest, build_tree, flatten_tree

__all__ = ["TodoEngine", "TodoForest", "build_tree", "flatten_tree"]
