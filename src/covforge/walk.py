from typing import Sequence
import libcst as cst

from covforge.common_structures import NodeKind, TransformContext, isinstance_Docstring, \
    isinstance_FutureImport, isinstance_Functional, node_kind
from covforge.inject import instrument_block
from covforge.normalize import normalize_body
from covforge.printlib import indent, print, undent

def prologue_length(statements: Sequence[cst.CSTNode]) -> int:
    '''
    Number of leading module statements that have to stay first: the docstring and
    `from __future__` imports. Nothing may be placed before or between them
    '''
    index = 0
    if statements and isinstance_Docstring(statements[0]):
        index = 1
    while index < len(statements) and isinstance_FutureImport(statements[index]):
        index += 1
    return index

def instrumentation_skip(statements: Sequence[cst.CSTNode]) -> int:
    '''
    Number of leading module statements that get no tracking call. A docstring on
    its own may be followed by one, but not when `from __future__` imports come next
    '''
    skip = prologue_length(statements)
    if any(isinstance_FutureImport(statement) for statement in statements[:skip]):
        return skip
    return 0

class Instrumenter(cst.CSTTransformer):
    '''
    Walks a module and appends a tracking call after each statement of every block

    libCST visits top-down and calls on_leave bottom-up, so when a block is left all
    of its statements have already been rebuilt with their own instrumentation.
    Dispatch goes by node_kind of the original node:

        SourceFile      top-level statements after any __future__ imports are instrumented
        Block           IndentedBlock / one-line suite statements are instrumented
        FunctionLike    body normalized into an instrumented IndentedBlock
        Expression      not descended into, passed to visit_expression
        anything else   rebuilt by libCST's own recursion, nothing injected

    Every rebuilt node is linked to the node it came from so positions of the
    rewritten tree can still be looked up
    '''
    def __init__(self, context: TransformContext):
        super().__init__()
        self.context = context

    def on_visit(self, node: cst.CSTNode) -> bool:
        kind = node_kind(node)

        if kind is NodeKind.SOURCE_FILE:
            for source_file in self.context.files:
                if source_file.module is node:
                    self.context.set_source_file(source_file)
                    print('instrumenting', source_file.path)

        elif kind in (NodeKind.STATEMENT, NodeKind.FUNCTION_LIKE):
            print('visit', type(node).__name__, ':', node)
            indent()

        return kind is not NodeKind.EXPRESSION

    def on_leave(self, original_node: cst.CSTNode, updated_node: cst.CSTNode) -> cst.CSTNode:
        self.context.link(updated_node, original_node)

        kind = node_kind(original_node)

        if kind is NodeKind.SOURCE_FILE:
            result = self.visit_source_file(original_node, updated_node)

        elif kind is NodeKind.BLOCK:
            result = self.visit_block(original_node, updated_node)

        elif kind is NodeKind.FUNCTION_LIKE:
            undent()
            result = normalize_body(self.context, original_node, updated_node)

        elif kind is NodeKind.EXPRESSION:
            result = self.visit_expression(updated_node)

        else:
            if kind is NodeKind.STATEMENT:
                undent()
            result = updated_node

        self.context.link(result, updated_node)
        return result

    def visit_source_file(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
        skip = instrumentation_skip(original_node.body)

        body = list(updated_node.body[:skip])
        body += instrument_block(self.context, original_node.body[skip:], updated_node.body[skip:])

        return updated_node.with_changes(body=body)

    def visit_block(self, original_node, updated_node):
        if isinstance(original_node, cst.SimpleStatementSuite):
            if self._owned_by_function(original_node):
                # normalize_body turns it into an IndentedBlock and instruments that
                return updated_node

            return updated_node.with_changes(
                body=instrument_block(self.context, original_node.body, updated_node.body, in_suite=True))

        return updated_node.with_changes(
            body=instrument_block(self.context, original_node.body, updated_node.body))

    def visit_expression(self, node: cst.BaseExpression) -> cst.BaseExpression:
        # Hook for expression-level rewriting (macro-style call replacement for
        # example). Statement coverage needs nothing here
        return node

    def _owned_by_function(self, node: cst.CSTNode) -> bool:
        for source_file in self.context.files:
            parent = source_file.parent_of(node)
            if parent is not None:
                return isinstance_Functional(parent)
        return False
