#
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2026 The tpplegal Authors
#
from typing_extensions import override
from collections.abc import Sequence

from tpplegal.itf.graph import Node

from .operators import TOperator

__all__ = [
    "TNode",
]


class TNode(Node):
    """Immutable node value stored in a TGraph arena slot.

    Substituting operands never mutates a node, it produces a new node
    value with the same uid through with_operands().
    """

    __slots__ = ("_uid", "_operator", "_operands", "_name")

    def __init__(
        self,
        uid: int,
        operator: TOperator,
        operands: Sequence[int] = (),
        name: str | None = None,
    ) -> None:
        self._uid = uid
        self._operator = operator
        self._operands = tuple(operands)
        self._name = "" if name is None else name

    @property
    @override
    def uid(self) -> int:
        return self._uid

    @property
    @override
    def name(self) -> str:
        return self._name

    @property
    @override
    def operands(self) -> tuple[int, ...]:
        return self._operands

    @property
    @override
    def operator(self) -> TOperator:
        return self._operator

    @property
    def ref(self) -> str:
        return f"%{self._uid}"

    def with_operands(self, operands: Sequence[int]) -> "TNode":
        return TNode(self._uid, self._operator, operands, self._name)

    def uses(self, uid: int) -> bool:
        return uid in self._operands

    @override
    def __str__(self) -> str:
        params = [f"%{operand}" for operand in self._operands]
        params += self._operator.attrs_str()
        attrs_str = f" {{name = {self._name!r}}}" if self._name else ""
        return f"{self._operator.name}({', '.join(params)}){attrs_str}"

    @override
    def __repr__(self) -> str:
        return f"{self.ref} = {self}"
