from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional
import libcst as cst

from covforge.config import InstrumentConfig
from covforge.printlib import stringify, warn

class NodeKind(Enum):
    SOURCE_FILE = 'SourceFile'
    BLOCK = 'Block'
    FUNCTION_LIKE = 'FunctionLike'
    STATEMENT = 'Statement'
    EXPRESSION = 'Expression'
    OTHER = 'Other'

def node_kind(node: cst.CSTNode) -> NodeKind:
    '''
    Closed classification used by the walker for dispatch. Order matters:
    FunctionDef is also a statement, so it is tested first
    '''
    if isinstance(node, cst.Module):
        return NodeKind.SOURCE_FILE
    if isinstance_Block(node):
        return NodeKind.BLOCK
    if isinstance_Functional(node):
        return NodeKind.FUNCTION_LIKE
    if isinstance(node, (cst.BaseStatement, cst.BaseSmallStatement)):
        return NodeKind.STATEMENT
    if isinstance(node, cst.BaseExpression):
        return NodeKind.EXPRESSION
    return NodeKind.OTHER

def isinstance_Block(node: cst.CSTNode):
    return isinstance(node, cst.IndentedBlock) \
        or isinstance(node, cst.SimpleStatementSuite)

Functional = cst.FunctionDef

def isinstance_Functional(node: cst.CSTNode):
    # Lambdas are expressions and are never descended into
    return isinstance(node, cst.FunctionDef)

def isinstance_Terminator(node: cst.CSTNode):
    '''
    Statements after which nothing in the same block runs. A simple statement line
    counts when any of its small statements is one
    '''
    if isinstance(node, cst.SimpleStatementLine):
        return any(isinstance_Terminator(small) for small in node.body)

    return isinstance(node, cst.Return) \
        or isinstance(node, cst.Break) \
        or isinstance(node, cst.Continue)

def isinstance_Docstring(node: cst.CSTNode):
    if not isinstance(node, cst.SimpleStatementLine) or not node.body:
        return False
    expr = node.body[0]
    return isinstance(expr, cst.Expr) \
        and isinstance(expr.value, (cst.SimpleString, cst.ConcatenatedString))

def isinstance_FutureImport(node: cst.CSTNode):
    if isinstance(node, cst.SimpleStatementLine):
        return any(isinstance_FutureImport(small) for small in node.body)

    return isinstance(node, cst.ImportFrom) \
        and isinstance(node.module, cst.Name) \
        and node.module.value == '__future__'

def isinstance_Whitespace(node: cst.CSTNode):
    typename = type(node).__name__

    return 'Whitespace' in typename \
            or 'Comma' in typename \
            or 'EmptyLine' in typename \
            or 'Newline' in typename

def isinstance_TrackingCall(node: cst.CSTNode, recorder_name='rcov'):
    '''
    `<recorder>.track(...)`, as a small statement or a whole line
    '''
    if isinstance(node, cst.SimpleStatementLine):
        return len(node.body) == 1 and isinstance_TrackingCall(node.body[0], recorder_name)

    if not isinstance(node, cst.Expr) or not isinstance(node.value, cst.Call):
        return False

    func = node.value.func
    return isinstance(func, cst.Attribute) \
        and isinstance(func.value, cst.Name) \
        and func.value.value == recorder_name \
        and func.attr.value == 'track'

class DiagnosticCode(IntEnum):
    UNRESOLVED_FILE = 9001
    MALFORMED_POSITION = 9002
    UNEXPECTED_INTERNAL = 9003

@dataclass(frozen=True)
class Diagnostic:
    node: cst.CSTNode
    code: DiagnosticCode
    message: str
    severity: str = 'warning'

    def __str__(self):
        return f'{self.severity} CF{int(self.code)}: {self.message}'

@dataclass
class TransformContext:
    '''
    Per-file state for one walk

    source_file is written once: the first SourceFile handed to set_source_file
    stays, later calls are ignored. files lists every SourceFile the walk may
    resolve nodes against, and origins is the original-reference side table
    (synthesized or rebuilt node -> the node it stands in for)
    '''
    config: InstrumentConfig = field(default_factory=InstrumentConfig)
    files: List['SourceFile'] = field(default_factory=list)
    source_file: Optional['SourceFile'] = None
    origins: Dict[cst.CSTNode, cst.CSTNode] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def set_source_file(self, source_file: 'SourceFile') -> 'SourceFile':
        if self.source_file is None:
            self.source_file = source_file
        return self.source_file

    def link(self, node: cst.CSTNode, original: cst.CSTNode):
        '''
        Record that node stands in for original, for position lookup only
        '''
        if node is not original:
            self.origins[node] = original

    def report(self, node: cst.CSTNode, code: DiagnosticCode, message: str) -> Diagnostic:
        diagnostic = Diagnostic(node, code, message)
        self.diagnostics.append(diagnostic)
        warn(str(diagnostic), '@', stringify(node))
        return diagnostic
