"""Resolver output: binding target -> annotations, in source order."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from .hashnote_ast import AnnotationNode, BindingTarget, describe_target


class FrozenTableError(RuntimeError):
    pass


class AnnotationTable:
    def __init__(self):
        self._entries: Dict[BindingTarget, List[AnnotationNode]] = {}
        self._targets: Dict[AnnotationNode, BindingTarget] = {}
        self._frozen = False

    def add(self, target: BindingTarget, node: AnnotationNode) -> None:
        if self._frozen:
            raise FrozenTableError("annotation table is read-only after resolution")
        if node in self._targets:
            raise ValueError(f"{node!r} is already attached to {self._targets[node]}")
        self._entries.setdefault(target, []).append(node)
        self._targets[node] = target

    def freeze(self) -> "AnnotationTable":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, target: BindingTarget) -> Tuple[AnnotationNode, ...]:
        return tuple(self._entries.get(target, ()))

    def payloads(self, target: BindingTarget) -> List[str]:
        return [node.payload for node in self._entries.get(target, ())]

    def target_of(self, node: AnnotationNode) -> Optional[BindingTarget]:
        return self._targets.get(node)

    def targets(self) -> List[BindingTarget]:
        return list(self._entries)

    def nodes(self) -> List[AnnotationNode]:
        """Every attached node in source order."""
        return sorted(self._targets, key=lambda node: node.span.start)

    def items(self) -> Iterator[Tuple[BindingTarget, Tuple[AnnotationNode, ...]]]:
        for target, nodes in self._entries.items():
            yield target, tuple(nodes)

    def to_dict(self) -> list:
        return [
            {"target": describe_target(target), "annotations": [n.to_dict() for n in nodes]}
            for target, nodes in self._entries.items()
        ]

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, target):
        return target in self._entries

    def __repr__(self):
        inner = ", ".join(f"{t}: {self.payloads(t)}" for t in self._entries)
        return f"AnnotationTable({inner})"
