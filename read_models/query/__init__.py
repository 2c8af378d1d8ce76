"""Generic SQL SELECT builder used beneath the model layer."""

from __future__ import annotations

from read_models.query.builder import QueryBuilder
from read_models.query.expression import CompositeExpression, ExpressionBuilder

__all__ = [
    "QueryBuilder",
    "ExpressionBuilder",
    "CompositeExpression",
]
