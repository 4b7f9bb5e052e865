from typing import List, Sequence, Union
import libcst as cst

from covforge.common_structures import DiagnosticCode, TransformContext, \
    isinstance_Terminator, node_kind
from covforge.config import InstrumentConfig
from covforge.lineno import PositionUnavailable, original_start_line, resolve_owning_file
from covforge.printlib import bold, print, warn

def recorder_call(config: InstrumentConfig, method: str, path: str, number: int) -> cst.Expr:
    '''
    <recorder>.<method>("<path>", <number>) as an expression statement
    '''
    return cst.Expr(
        cst.Call(
            func=cst.Attribute(value=cst.Name(config.recorder_name), attr=cst.Name(method)),
            args=[
                cst.Arg(cst.SimpleString(repr(path))),
                cst.Arg(cst.Integer(str(number))),
            ],
        )
    )

def make_tracking_call(config: InstrumentConfig, path: str, line: int, in_suite=False) \
        -> Union[cst.SimpleStatementLine, cst.Expr]:
    '''
    The statement recording that execution reached path:line. In a one-line suite it
    is a bare small statement, everywhere else a line of its own
    '''
    call = recorder_call(config, 'track', path, line)
    if in_suite:
        return call
    return cst.SimpleStatementLine(body=[call])

def visit_statement(context: TransformContext,
                    original: cst.CSTNode,
                    updated: cst.CSTNode,
                    in_suite=False) -> List[cst.CSTNode]:
    '''
    A statement expands to [updated] or [updated, tracking call]

    original is used for every position query, updated is what goes in the output.
    The walker has already rebuilt updated's children, so nested blocks and
    functions inside it carry their own tracking calls. Failures leave the statement
    without a call; the statement itself is always kept
    '''
    if isinstance_Terminator(original):
        return [updated]

    try:
        source_file = resolve_owning_file(original, context.files, context.origins)
        if source_file is None:
            context.report(original, DiagnosticCode.UNRESOLVED_FILE,
                           f'failed to find source file for node of kind {type(original).__name__}'
                           f' ({node_kind(original).value})')
            return [updated]

        line = original_start_line(source_file, original, context.origins) + 1
        tracking_call = make_tracking_call(context.config, source_file.path, line, in_suite)

    except PositionUnavailable as e:
        context.report(original, DiagnosticCode.MALFORMED_POSITION,
                       f'no position for statement, left uninstrumented: {e}')
        return [updated]

    except Exception as e:
        context.report(original, DiagnosticCode.UNEXPECTED_INTERNAL,
                       f'instrumentation failed with {type(e).__name__}: {e}')
        return [updated]

    print('track', bold(line), updated)
    return [updated, tracking_call]

def instrument_block(context: TransformContext,
                     originals: Sequence[cst.CSTNode],
                     updateds: Sequence[cst.CSTNode],
                     in_suite=False) -> List[cst.CSTNode]:
    '''
    Map every statement of a block through visit_statement and flatten
    '''
    if len(originals) != len(updateds):
        # Statements were added or removed under us, pairing them up would misplace lines
        warn('statement count changed during the walk, block left uninstrumented')
        return list(updateds)

    body: List[cst.CSTNode] = []
    for original, updated in zip(originals, updateds):
        body.extend(visit_statement(context, original, updated, in_suite))

    return body
